from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from gamelobby import db
from gamelobby.models import User
from gamelobby.tokens import issue_token

auth = Blueprint('auth', __name__)

USERNAME_MAX_LENGTH = 64

def _requested_username():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    username = data.get('username')
    if not isinstance(username, str) or not username.strip():
        return None
    return username.strip()

def _username_error(username):
    if not username:
        return jsonify({'error': 'Username is required'}), 400
    if len(username) > USERNAME_MAX_LENGTH:
        return jsonify({'error': f'Username must be at most {USERNAME_MAX_LENGTH} characters'}), 400
    return None

@auth.route('/register', methods=['POST', 'OPTIONS'])
def register():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    username = _requested_username()
    error = _username_error(username)
    if error:
        return error

    try:
        if User.query.filter_by(username=username).first():
            return jsonify({'error': 'Username already in use'}), 409
        db.session.add(User(username=username, wins=0))
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same name
        db.session.rollback()
        return jsonify({'error': 'Username already in use'}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.error(f"[register] failed for user={username}", exc_info=True)
        return jsonify({'error': 'Registration failed'}), 500

    current_app.logger.info(f"[register] user={username}")
    return jsonify({
        'token': issue_token(username),
        'username': username,
        'message': 'Registration successful!',
    })

@auth.route('/login', methods=['POST', 'OPTIONS'])
def login():
    if request.method == 'OPTIONS':
        return jsonify({'status': 'ok'}), 200
    username = _requested_username()
    error = _username_error(username)
    if error:
        return error

    try:
        user = User.query.filter_by(username=username).first()
    except SQLAlchemyError:
        current_app.logger.error(f"[login] lookup failed for user={username}", exc_info=True)
        return jsonify({'error': 'Login failed'}), 500
    if not user:
        return jsonify({'error': 'User not found'}), 404

    current_app.logger.info(f"[login] user={username}")
    return jsonify({
        'token': issue_token(username),
        'username': username,
        'message': 'Login successful!',
    })
