import threading
from typing import Dict, List, Optional, Set, Tuple

from .session import DEFAULT_GAME_TYPE, Session


def normalize_room_name(name: str) -> str:
    return (name or '').strip().lower()


class SessionRegistry:
    """All live sessions keyed by id.

    The registry lock only covers the table itself; a session's own fields
    are guarded by ``Session.lock`` and never touched here.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}
        self._names: Dict[str, str] = {}

    def create(self, game_type: str = DEFAULT_GAME_TYPE, name: Optional[str] = None) -> Session:
        session = Session(game_type=game_type, name=name)
        self.add(session)
        return session

    def add(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.id] = session
            if session.name:
                self._names[normalize_room_name(session.name)] = session.id

    def open_room(self, name: str, game_type: str = DEFAULT_GAME_TYPE) -> Tuple[Session, bool]:
        """Get or create the session for a named room. Returns (session, created)."""
        key = normalize_room_name(name)
        with self._lock:
            existing_id = self._names.get(key)
            if existing_id and existing_id in self._sessions:
                return self._sessions[existing_id], False
            session = Session(game_type=game_type, name=key)
            self._sessions[session.id] = session
            self._names[key] = session.id
            return session, True

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def get_by_name(self, name: str) -> Optional[Session]:
        with self._lock:
            session_id = self._names.get(normalize_room_name(name))
            return self._sessions.get(session_id) if session_id else None

    def remove(self, session_id: str) -> Optional[Session]:
        """Remove a session. Only the first caller gets it back."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session and session.name:
                key = normalize_room_name(session.name)
                if self._names.get(key) == session_id:
                    del self._names[key]
            return session

    def sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def sessions_for(self, connection_id: str) -> List[Session]:
        return [s for s in self.sessions() if s.seat_for(connection_id)]

    def __len__(self):
        with self._lock:
            return len(self._sessions)


class ConnectionDirectory:
    def __init__(self):
        self._lock = threading.Lock()
        self._names: Dict[str, Optional[str]] = {}
        self._sessions: Dict[str, Set[str]] = {}

    def connect(self, connection_id: str) -> None:
        with self._lock:
            self._names.setdefault(connection_id, None)
            self._sessions.setdefault(connection_id, set())

    def bind(self, connection_id: str, display_name: str) -> str:
        """Bind a display name; the first one bound for a connection sticks."""
        with self._lock:
            current = self._names.get(connection_id)
            if current:
                return current
            self._names[connection_id] = display_name
            self._sessions.setdefault(connection_id, set())
            return display_name

    def name_for(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._names.get(connection_id)

    def is_connected(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._names

    def add_session(self, connection_id: str, session_id: str) -> None:
        with self._lock:
            if connection_id in self._sessions:
                self._sessions[connection_id].add(session_id)

    def discard_session(self, connection_id: str, session_id: str) -> None:
        with self._lock:
            self._sessions.get(connection_id, set()).discard(session_id)

    def sessions_for(self, connection_id: str) -> Set[str]:
        with self._lock:
            return set(self._sessions.get(connection_id, ()))

    def remove(self, connection_id: str) -> Optional[str]:
        with self._lock:
            self._sessions.pop(connection_id, None)
            return self._names.pop(connection_id, None)

    def __len__(self):
        with self._lock:
            return len(self._names)
