import time
from typing import Optional

from tictactoe.models import User
from . import leaderboard
from .broadcast import BroadcastRouter
from .errors import BadRequest, NotAParticipant, SessionNotFound
from .matchmaking import MatchmakingQueue
from .registry import ConnectionDirectory, SessionRegistry
from .scheduler import schedule_reset
from .scoring import record_win
from .session import DEFAULT_GAME_TYPE, PLAYING, WAITING, MoveResult, Session


class Lobby:
    """Wires the queue, registry, directory and router into the game flow.

    Created once at import time and bound to an app with ``init_app``, like
    the Flask extensions. Each public method is one inbound event. No method
    holds more than one of the registry, directory, queue or session locks
    at a time.
    """

    def __init__(self):
        self.app = None
        self.socketio = None
        self.router: Optional[BroadcastRouter] = None
        self.reset_state()

    def init_app(self, app, socketio) -> None:
        self.app = app
        self.socketio = socketio
        self.router = BroadcastRouter(socketio, app.config.get('SOCKETIO_NAMESPACE', '/ws'))
        self.reset_state()
        app.extensions['lobby'] = self

    def reset_state(self) -> None:
        self.registry = SessionRegistry()
        self.directory = ConnectionDirectory()
        self.queue = MatchmakingQueue()

    @property
    def logger(self):
        return self.app.logger

    @property
    def default_game_type(self) -> str:
        return self.app.config.get('DEFAULT_GAME_TYPE', DEFAULT_GAME_TYPE)

    # ---- connections ----
    def connect(self, connection_id: str) -> None:
        self.directory.connect(connection_id)
        self.publish_stats()

    def identify(self, connection_id: str, display_name: Optional[str]) -> str:
        name = (display_name or '').strip()
        if not name:
            name = self.directory.name_for(connection_id)
        if not name:
            raise BadRequest('displayName is required')
        return self.directory.bind(connection_id, name)

    def disconnect(self, connection_id: str) -> None:
        name = self.directory.remove(connection_id)
        cancelled = self.queue.cancel(connection_id)
        destroyed = [
            s.id for s in self.registry.sessions_for(connection_id)
            if self._destroy(s, departed=connection_id)
        ]
        self.logger.info(
            f"[disconnect] conn={connection_id} name={name!r} unparked={len(cancelled)} destroyed={destroyed}"
        )
        self.publish_stats()

    # ---- matchmaking ----
    def request_match(self, connection_id: str, display_name: Optional[str],
                      game_type: Optional[str] = None) -> Optional[Session]:
        """Pair with the oldest parked requester or park this one.

        Returns the new session when paired, None when parked.
        """
        game_type = game_type or self.default_game_type
        name = self.identify(connection_id, display_name)
        opponent = self.queue.request_match(game_type, connection_id, name)
        if opponent is None:
            self.logger.info(f"[match-parked] conn={connection_id} name={name!r} game_type={game_type}")
            self.router.to_connection(connection_id, 'waiting-for-opponent', {
                'message': 'Waiting for an opponent...',
                'gameType': game_type,
            })
            self.publish_stats()
            return None

        session = Session(game_type=game_type)
        session.add_seat(opponent.connection_id, opponent.display_name)
        session.add_seat(connection_id, name)
        self.registry.add(session)
        self._subscribe_seats(session)

        if not self._seats_connected(session):
            # The parked opponent left while we were pairing
            self._destroy(session, notify=False)
            if not self.directory.is_connected(connection_id):
                return None
            return self.request_match(connection_id, name, game_type)

        self._announce_start(session)
        return session

    def cancel_match(self, connection_id: str) -> int:
        cancelled = self.queue.cancel(connection_id)
        if cancelled:
            self.logger.info(f"[match-cancelled] conn={connection_id} entries={len(cancelled)}")
            self.publish_stats()
        return len(cancelled)

    def join_room(self, connection_id: str, room_name: Optional[str],
                  display_name: Optional[str]) -> Optional[Session]:
        """Open a named room or take its second seat."""
        room_name = (room_name or '').strip()
        if not room_name:
            raise BadRequest('roomName is required')
        name = self.identify(connection_id, display_name)
        session, created = self.registry.open_room(room_name, self.default_game_type)
        if created:
            self.logger.info(f"[room-opened] session={session.id} room={session.name!r} name={name!r}")
        try:
            session.add_seat(connection_id, name)
        except SessionNotFound:
            # Destroyed between lookup and seating; the name is free again
            return self.join_room(connection_id, room_name, name)
        if self.registry.get(session.id) is not session:
            # Removed after lookup but before it was closed
            return self.join_room(connection_id, room_name, name)
        self._subscribe_seats(session)

        if not self._seats_connected(session):
            self._destroy(session, notify=False)
            if not self.directory.is_connected(connection_id):
                return None
            return self.join_room(connection_id, room_name, name)

        if session.status == WAITING:
            self.router.to_connection(connection_id, 'waiting-for-opponent', {
                'message': 'Waiting for an opponent...',
                'gameType': session.game_type,
                'sessionId': session.id,
                'roomName': session.name,
            })
            self.publish_stats()
        else:
            self._announce_start(session)
        return session

    # ---- play ----
    def submit_move(self, connection_id: str, session_id: str, cell_index) -> MoveResult:
        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFound()
        with session.lock:
            result = session.apply_move(connection_id, cell_index)
            self.router.to_session(session.id, 'move-applied', result.to_dict())
            if result.is_terminal:
                timer = schedule_reset(self.app, self.socketio, session.id, self._auto_reset)
                session.attach_reset_timer(timer)
        self.logger.info(
            f"[move-applied] session={session.id} cell={result.cell_index} symbol={result.symbol} next={result.current_symbol}"
        )
        if result.is_terminal:
            self.logger.info(
                f"[session-finished] session={session.id} winner={result.winner} draw={result.is_draw}"
            )
            if result.winner is not None and record_win(result.display_name):
                self.publish_leaderboard()
        return result

    def _auto_reset(self, session_id: str) -> None:
        session = self.registry.get(session_id)
        if session is None:
            self.logger.info(f"[timer-abort] session={session_id} no longer exists")
            return
        with session.lock:
            if not session.reset():
                self.logger.info(f"[timer-abort] session={session_id} closed")
                return
            self.router.to_session(session.id, 'session-reset', {
                'sessionId': session.id,
                'board': list(session.board),
                'currentSymbol': session.current_symbol,
                'status': session.status,
            })
        self.logger.info(f"[timer-fire] session={session_id} status={session.status}")

    def chat(self, connection_id: str, session_id: str, text: Optional[str]) -> dict:
        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFound()
        seat = session.seat_for(connection_id)
        if seat is None:
            raise NotAParticipant()
        text = (text or '').strip()
        if not text:
            raise BadRequest('text is required')
        text = text[:int(self.app.config.get('CHAT_MAX_LENGTH', 500))]
        payload = {
            'sessionId': session.id,
            'displayName': seat.display_name,
            'text': text,
            'timestamp': int(time.time() * 1000),
        }
        self.router.to_session(session.id, 'session-chat', payload)
        return payload

    def leave_session(self, connection_id: str, session_id: str) -> None:
        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFound()
        if session.seat_for(connection_id) is None:
            raise NotAParticipant()
        if self._destroy(session, departed=connection_id):
            self.publish_stats()

    # ---- aggregates ----
    def stats(self) -> dict:
        sessions = self.registry.sessions()
        waiting_rooms = sum(1 for s in sessions if s.status == WAITING)
        return {
            'players_registered': User.query.count(),
            'players_online': len(self.directory),
            'active_sessions': len(sessions),
            'sessions_playing': sum(1 for s in sessions if s.status == PLAYING),
            'players_waiting': self.queue.waiting_count() + waiting_rooms,
        }

    def publish_stats(self) -> None:
        self.router.to_all('stats-update', self.stats())

    def publish_leaderboard(self):
        return leaderboard.publish(self.router)

    # ---- helpers ----
    def _subscribe_seats(self, session: Session) -> None:
        for seat in list(session.seats):
            self.directory.add_session(seat.connection_id, session.id)
            self.router.subscribe(seat.connection_id, session.id)

    def _seats_connected(self, session: Session) -> bool:
        return all(self.directory.is_connected(s.connection_id) for s in list(session.seats))

    def _announce_start(self, session: Session) -> None:
        payload = session.to_dict()
        self.router.to_session(session.id, 'session-started', payload)
        names = ' vs '.join(s['displayName'] for s in payload['seats'])
        self.logger.info(f"[session-created] session={session.id} game_type={session.game_type} seats={names}")
        self.publish_stats()

    def _destroy(self, session: Session, departed: Optional[str] = None, notify: bool = True) -> bool:
        """Remove, close and unsubscribe a session. Only the first caller wins."""
        if self.registry.remove(session.id) is None:
            return False
        session.close()
        departed_seat = session.seat_for(departed) if departed else None
        departed_name = departed_seat.display_name if departed_seat else 'Your opponent'
        for seat in list(session.seats):
            self.directory.discard_session(seat.connection_id, session.id)
            if not self.directory.is_connected(seat.connection_id):
                continue
            self.router.unsubscribe(seat.connection_id, session.id)
            if notify and seat.connection_id != departed:
                self.router.to_connection(seat.connection_id, 'opponent-left', {
                    'sessionId': session.id,
                    'message': f'{departed_name} left the game',
                })
        self.logger.info(f"[session-destroyed] session={session.id} departed={departed}")
        return True
