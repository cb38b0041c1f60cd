from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def get_engine(flask_app=None):
    from flask import current_app
    return (flask_app or current_app).extensions['session_engine']


def create_session_engine(flask_app):
    """Wire the session engine to its scheduler and collaborators."""
    from gamelobby.services.session.engine import SessionEngine
    from gamelobby.services.session.scheduler import BackgroundScheduler, ManualScheduler
    from gamelobby.services.session.rewards import (
        make_history_sink,
        make_transition_broadcast,
        make_win_credit,
    )

    cfg = flask_app.config
    if cfg.get('TESTING') and not cfg.get('ENABLE_SCHEDULER_IN_TESTS'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(
            socketio,
            heartbeat_sec=float(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
            logger=flask_app.logger,
        )

    engine = SessionEngine(
        scheduler,
        duration_sec=float(cfg.get('SESSION_DURATION_SEC', 20)),
        cooldown_sec=float(cfg.get('SESSION_COOLDOWN_SEC', 10)),
        on_winner=make_win_credit(flask_app),
        history_sink=make_history_sink(flask_app),
        credit_attempts=int(cfg.get('WIN_CREDIT_ATTEMPTS', 3)),
        logger=flask_app.logger,
    )
    engine.add_listener(make_transition_broadcast(socketio))
    return engine


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from gamelobby.main import main
    flask_app.register_blueprint(main)

    from gamelobby.auth import auth
    flask_app.register_blueprint(auth)

    from gamelobby.api.session import session_bp
    flask_app.register_blueprint(session_bp, url_prefix='/session')

    from gamelobby.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Bearer-token user loading for Flask-Login
    from gamelobby.models import User
    from gamelobby.tokens import bearer_token, read_token

    @login_manager.request_loader
    def load_user_from_request(req):
        token = bearer_token(req.headers.get('Authorization'))
        username = read_token(token) if token else None
        if not username:
            return None
        return User.query.filter_by(username=username).first()

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    engine = create_session_engine(flask_app)
    flask_app.extensions['session_engine'] = engine
    if flask_app.config.get('SESSION_AUTOSTART'):
        engine.start()

    # CLI commands (db upgrade, db-reset) never serve a request, so they
    # never open a round or arm timers
    @flask_app.before_request
    def ensure_session_started():
        engine.start()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                db.session.add(User(username=u, wins=0))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
