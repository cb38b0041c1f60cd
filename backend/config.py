import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Bearer tokens are signed with JWT_SECRET, falling back to SECRET_KEY
    JWT_SECRET = os.environ.get('JWT_SECRET') or SECRET_KEY
    TOKEN_TTL_SEC = int(os.environ.get('TOKEN_TTL_SEC', '3600'))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///game_lobby.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORT = int(os.environ.get('PORT', '5000'))
    # Round timers (seconds)
    SESSION_DURATION_SEC = int(os.environ.get('SESSION_DURATION_SEC', '20'))
    SESSION_COOLDOWN_SEC = int(os.environ.get('SESSION_COOLDOWN_SEC', '10'))
    # Open the first round at app creation; otherwise the first request or run.py opens it
    SESSION_AUTOSTART = os.environ.get('SESSION_AUTOSTART', '0') in ('1', 'true', 'yes')
    # Attempts per winner when crediting a win to the user store
    WIN_CREDIT_ATTEMPTS = int(os.environ.get('WIN_CREDIT_ATTEMPTS', '3'))
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '10'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
