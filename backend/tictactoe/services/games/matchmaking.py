import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional


@dataclass
class QueueEntry:
    connection_id: str
    display_name: str
    game_type: str
    enqueued_at: float = field(default_factory=time.time)


class MatchmakingQueue:
    """Parked requesters per game type, matched first parked, first matched."""

    def __init__(self):
        self._lock = threading.Lock()
        self._parked: Dict[str, Deque[QueueEntry]] = defaultdict(deque)

    def request_match(self, game_type: str, connection_id: str, display_name: str) -> Optional[QueueEntry]:
        """Consume the oldest parked opponent, or park the requester.

        Returns the opponent entry when matched, None when the requester was
        parked. A connection never matches its own parked entry; re-requesting
        replaces it.
        """
        with self._lock:
            waiting = self._parked[game_type]
            stale = [e for e in waiting if e.connection_id == connection_id]
            for entry in stale:
                waiting.remove(entry)
            if waiting:
                return waiting.popleft()
            waiting.append(QueueEntry(connection_id, display_name, game_type))
            return None

    def cancel(self, connection_id: str) -> List[QueueEntry]:
        removed = []
        with self._lock:
            for waiting in self._parked.values():
                for entry in [e for e in waiting if e.connection_id == connection_id]:
                    waiting.remove(entry)
                    removed.append(entry)
        return removed

    def parked(self, game_type: str) -> List[QueueEntry]:
        with self._lock:
            return list(self._parked.get(game_type, ()))

    def is_parked(self, connection_id: str) -> bool:
        with self._lock:
            return any(e.connection_id == connection_id for q in self._parked.values() for e in q)

    def waiting_count(self, game_type: Optional[str] = None) -> int:
        with self._lock:
            if game_type is not None:
                return len(self._parked.get(game_type, ()))
            return sum(len(q) for q in self._parked.values())
