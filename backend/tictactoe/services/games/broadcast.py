def session_room(session_id: str) -> str:
    return f"session:{session_id}"


class BroadcastRouter:
    """Deliver events to a session's room, one connection, or everyone.

    Talks to the Socket.IO server directly so it also works from background
    tasks that run outside a request context.
    """

    def __init__(self, socketio, namespace: str = '/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def subscribe(self, connection_id: str, session_id: str) -> None:
        self.socketio.server.enter_room(connection_id, session_room(session_id), namespace=self.namespace)

    def unsubscribe(self, connection_id: str, session_id: str) -> None:
        self.socketio.server.leave_room(connection_id, session_room(session_id), namespace=self.namespace)

    def to_session(self, session_id: str, event: str, payload) -> None:
        self.socketio.emit(event, payload, to=session_room(session_id), namespace=self.namespace)

    def to_connection(self, connection_id: str, event: str, payload) -> None:
        self.socketio.emit(event, payload, to=connection_id, namespace=self.namespace)

    def to_all(self, event: str, payload) -> None:
        self.socketio.emit(event, payload, namespace=self.namespace)
