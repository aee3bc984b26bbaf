"""Request-scoped errors raised by the game services.

Every error is reported to the originating connection only and never
leaves a session partially mutated.
"""


class GameError(Exception):
    code = 'GameError'
    default_message = 'Request failed'

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class BadRequest(GameError):
    code = 'BadRequest'
    default_message = 'Malformed request'


class SessionNotFound(GameError):
    code = 'SessionNotFound'
    default_message = 'Session not found'


class NotAParticipant(GameError):
    code = 'NotAParticipant'
    default_message = 'You are not seated in this session'


class NotReady(GameError):
    code = 'NotReady'
    default_message = 'The game is not in progress'


class OutOfTurn(GameError):
    code = 'OutOfTurn'
    default_message = 'It is not your turn'


class CellOccupied(GameError):
    code = 'CellOccupied'
    default_message = 'Cell is not available'


class RoomFull(GameError):
    code = 'RoomFull'
    default_message = 'Room already has two players'


class UsernameTaken(GameError):
    code = 'UsernameTaken'
    default_message = 'Username already exists'


class InvalidCredentials(GameError):
    code = 'InvalidCredentials'
    default_message = 'Invalid username or password'
