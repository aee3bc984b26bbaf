import threading
from typing import Callable


class ResetTimer:
    """One-shot, cancellable handle for a session's post-game reset.

    Whichever of ``cancel()`` and ``fire()`` runs first wins; a cancelled
    timer never invokes its callback.
    """

    def __init__(self, session_id: str, delay: float, callback: Callable[[str], None]):
        self.session_id = session_id
        self.delay = delay
        self._callback = callback
        self._lock = threading.Lock()
        self._done = False
        self.cancelled = False

    def cancel(self) -> None:
        with self._lock:
            if not self._done:
                self._done = True
                self.cancelled = True

    @property
    def pending(self) -> bool:
        with self._lock:
            return not self._done

    def fire(self) -> bool:
        with self._lock:
            if self._done:
                return False
            self._done = True
        self._callback(self.session_id)
        return True


def schedule_reset(app, socketio, session_id: str, callback: Callable[[str], None]) -> ResetTimer:
    """Arm the auto-reset for a finished session.

    - Armed but not started in TESTING mode (tests call ``fire()``) unless
      ENABLE_RESET_TIMER_IN_TESTS is set
    - Runs as a Socket.IO background task otherwise
    - The callback runs inside an app context
    """
    delay = float(app.config.get('RESET_DELAY_SEC', 3))

    def _run_in_context(sid: str) -> None:
        with app.app_context():
            callback(sid)

    timer = ResetTimer(session_id, delay, _run_in_context)
    app.logger.info(f"[timer-set] session={session_id} delay={delay}s")

    if app.config.get('TESTING') and not app.config.get('ENABLE_RESET_TIMER_IN_TESTS'):
        return timer

    def _worker(handle: ResetTimer):
        socketio.sleep(handle.delay)
        if not handle.fire():
            app.logger.info(f"[timer-abort] session={handle.session_id} cancelled")

    socketio.start_background_task(_worker, timer)
    return timer
