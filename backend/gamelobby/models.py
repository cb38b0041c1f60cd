from datetime import datetime
from gamelobby import db
from flask_login import UserMixin
import json

class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    wins = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'username': self.username,
            'wins': self.wins or 0,
        }

class CompletedSession(db.Model):
    """A finished round, written once by the history sink."""
    __tablename__ = 'completed_session'
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    opened_at = db.Column(db.Float, nullable=False)
    closed_at = db.Column(db.Float, nullable=False)
    winning_number = db.Column(db.Integer, nullable=False)
    players = db.Column(db.Text, nullable=False)  # JSON list of {username, pick}
    winners = db.Column(db.Text, nullable=False)  # JSON list of usernames

    def to_dict(self):
        try:
            players = json.loads(self.players) if self.players else []
        except ValueError:
            players = []
        try:
            winners = json.loads(self.winners) if self.winners else []
        except ValueError:
            winners = []
        return {
            'roundId': self.round_id,
            'openedAt': self.opened_at,
            'closedAt': self.closed_at,
            'winningNumber': self.winning_number,
            'players': players,
            'winners': winners,
        }
