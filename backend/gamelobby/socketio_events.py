from flask_socketio import emit
from gamelobby import socketio, get_engine


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_ping(data):
    emit('pong', data or {})


def handle_session_status(_data=None):
    status = get_engine().status()
    emit('session_status', {
        'isActive': status['isActive'],
        'timeLeft': status['timeLeft'],
        'playersCount': status['playersCount'],
        'roundId': status['roundId'],
        'nextSessionStart': status['nextSessionStart'],
    })


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    Round transitions are pushed separately as 'session_update' by the
    engine's broadcast listener.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')
    socketio.on_event('session_status', handle_session_status, namespace='/ws')
