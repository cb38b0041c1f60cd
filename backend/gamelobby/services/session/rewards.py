import json

from gamelobby import db
from gamelobby.models import CompletedSession, User


def make_win_credit(app):
    """Build the reward callback: one atomic ``wins = wins + 1`` per call."""

    def credit(username: str, round_id: str) -> None:
        with app.app_context():
            try:
                updated = (
                    User.query.filter_by(username=username)
                    .update({User.wins: User.wins + 1}, synchronize_session=False)
                )
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            if not updated:
                app.logger.warning(f"[credit-skip] round={round_id} user={username} not found")

    return credit


def make_history_sink(app):
    """Build the history sink that stores a finished round."""

    def record(round_record: dict) -> None:
        with app.app_context():
            row = CompletedSession(
                round_id=round_record['round_id'],
                opened_at=round_record['opened_at'],
                closed_at=round_record['closed_at'],
                winning_number=round_record['winning_number'],
                players=json.dumps(round_record['players']),
                winners=json.dumps(round_record['winners']),
            )
            try:
                db.session.add(row)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

    return record


def make_transition_broadcast(socketio):
    def broadcast(event: dict) -> None:
        socketio.emit('session_update', event, namespace='/ws')

    return broadcast
