from functools import wraps
from typing import Optional

from flask import current_app, request
from flask_login import current_user
from flask_socketio import emit

from tictactoe import socketio, lobby
from tictactoe.services.games.errors import BadRequest, GameError


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _text(data: dict, key: str) -> Optional[str]:
    """Return an optional string field; anything else is a BadRequest."""
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise BadRequest(f'{key} must be a string')
    return value


def _display_name(data: dict) -> Optional[str]:
    name = _text(data, 'displayName')
    if not name and current_user and current_user.is_authenticated:
        name = current_user.username
    return name


def _cell_index(value):
    if isinstance(value, str):
        try:
            return int(value.strip()) if value.strip().isdecimal() else value
        except ValueError:
            return value
    return value


def reports_errors(handler):
    """Send GameErrors back to the requesting socket only."""
    @wraps(handler)
    def wrapper(data=None):
        try:
            data = data or {}
            if not isinstance(data, dict):
                raise BadRequest('payload must be an object')
            return handler(data)
        except GameError as exc:
            current_app.logger.info(
                f"[request-rejected] conn={_get_sid()} event={handler.__name__} code={exc.code}"
            )
            emit('error', exc.to_dict())
    return wrapper


def handle_connect(auth=None):
    lobby.connect(_get_sid())
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    lobby.disconnect(_get_sid())


@reports_errors
def handle_request_match(data):
    lobby.request_match(_get_sid(), _display_name(data), _text(data, 'gameType'))


@reports_errors
def handle_cancel_match(data):
    emit('match-cancelled', {'cancelled': lobby.cancel_match(_get_sid())})


@reports_errors
def handle_join_room(data):
    lobby.join_room(_get_sid(), _text(data, 'roomName'), _display_name(data))


@reports_errors
def handle_submit_move(data):
    lobby.submit_move(_get_sid(), _text(data, 'sessionId'), _cell_index(data.get('cellIndex')))


@reports_errors
def handle_session_chat(data):
    lobby.chat(_get_sid(), _text(data, 'sessionId'), _text(data, 'text'))


@reports_errors
def handle_leave_session(data):
    lobby.leave_session(_get_sid(), _text(data, 'sessionId'))


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('request-match', handle_request_match, namespace=namespace)
    socketio.on_event('cancel-match', handle_cancel_match, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('submit-move', handle_submit_move, namespace=namespace)
    socketio.on_event('session-chat', handle_session_chat, namespace=namespace)
    socketio.on_event('leave-session', handle_leave_session, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
