"""Session engine exceptions.

Every engine rejection is a ``SessionError`` carrying the HTTP status and
message the API layer should surface. Rejections never leave partial
state behind.
"""


class SessionError(Exception):
    status_code = 400
    message = 'Session error'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {'error': self.message}


class NoActiveRound(SessionError):
    message = 'No active session'


class AlreadyJoined(SessionError):
    message = "You've already joined the session"


class NotJoined(SessionError):
    message = 'Join the session before picking'


class AlreadyPicked(SessionError):
    message = "You've already picked a number this session"


class InvalidPick(SessionError):
    message = 'Invalid pick. Pick must be a number between 1 and 10'


class NoResolvedRound(SessionError):
    message = 'No completed session yet'
