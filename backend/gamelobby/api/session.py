from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError
from gamelobby import get_engine
from gamelobby.models import User, CompletedSession
from gamelobby.services.session.errors import SessionError


session_bp = Blueprint('session', __name__)


@session_bp.errorhandler(SessionError)
def handle_session_error(err):
    return jsonify(err.to_dict()), err.status_code


@session_bp.route('', methods=['GET'])
def public_status():
    status = get_engine().status()
    return jsonify({
        'isActive': status['isActive'],
        'timeLeft': status['timeLeft'],
        'playersCount': status['playersCount'],
    })


@session_bp.route('/join', methods=['POST'])
@login_required
def join():
    get_engine().join(current_user.username)
    return jsonify({'message': "You've joined the session!"})


@session_bp.route('/pick', methods=['POST'])
@login_required
def pick():
    data = request.get_json(silent=True)
    # A non-object body carries no pick; the engine rejects None as invalid
    value = data.get('pick') if isinstance(data, dict) else None
    value = get_engine().pick(current_user.username, value)
    return jsonify({'message': f'You picked {value}!'})


@session_bp.route('/leave', methods=['POST'])
@login_required
def leave():
    get_engine().leave(current_user.username)
    return jsonify({'message': "You've left the session"})


@session_bp.route('/status', methods=['GET'])
@login_required
def player_status():
    status = get_engine().status(current_user.username)
    return jsonify({
        'isActive': status['isActive'],
        'timeLeft': status['timeLeft'],
        'hasJoined': status['hasJoined'],
        'players': status['players'],
        'hasPicked': status['hasPicked'],
        'pick': status['pick'],
        'nextSessionStart': status['nextSessionStart'],
    })


@session_bp.route('/results', methods=['GET'])
@login_required
def results():
    return jsonify(get_engine().current_results())


@session_bp.route('/completed-results', methods=['GET'])
@login_required
def completed_results():
    return jsonify(get_engine().results())


@session_bp.route('/leaderboard', methods=['GET'])
@login_required
def leaderboard():
    size = int(current_app.config.get('LEADERBOARD_SIZE', 10))
    try:
        users = User.query.order_by(User.wins.desc(), User.username.asc()).limit(size).all()
    except SQLAlchemyError:
        current_app.logger.error("[leaderboard] query failed", exc_info=True)
        return jsonify({'error': 'Failed to fetch leaderboard'}), 500
    return jsonify({'leaderboard': [u.to_dict() for u in users]})


@session_bp.route('/history', methods=['GET'])
@login_required
def history():
    try:
        limit = int(request.args.get('limit', 10))
    except (TypeError, ValueError):
        return jsonify({'error': 'limit must be an integer'}), 400
    limit = max(1, min(limit, 100))
    try:
        rows = CompletedSession.query.order_by(CompletedSession.closed_at.desc()).limit(limit).all()
    except SQLAlchemyError:
        current_app.logger.error("[history] query failed", exc_info=True)
        return jsonify({'error': 'Failed to fetch session history'}), 500
    return jsonify({'sessions': [row.to_dict() for row in rows]})
