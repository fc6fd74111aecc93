"""Background reconnection with exponential backoff."""

import threading
from enum import Enum
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = 'idle'
    WAITING = 'waiting'
    ATTEMPTING = 'attempting'


class ReconnectLoop:
    """Runs ``attempt`` on a daemon thread until it succeeds.

    Waits ``minwait`` ms before the first attempt and doubles the wait after each
    failure, capped at ``maxwait``. There is no attempt limit. Only one loop runs
    at a time; trigger() while running is a no-op.
    """
    def __init__(self, attempt: Callable[[threading.Event], None], minwait: int, maxwait: int):
        self._attempt = attempt
        self.minwait = minwait
        self.maxwait = maxwait
        self._lock = threading.Lock()
        self._state = LoopState.IDLE
        self._wait = minwait
        self._cancel: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.attempts = 0

    @property
    def state(self) -> LoopState:
        with self._lock:
            return self._state

    @property
    def wait(self) -> int:
        """Current backoff wait in milliseconds."""
        with self._lock:
            return self._wait

    @property
    def running(self) -> bool:
        return self.state is not LoopState.IDLE

    def trigger(self) -> bool:
        """Start the loop unless one is already running. Returns True if started."""
        with self._lock:
            if self._state is not LoopState.IDLE:
                return False
            self._cancel = threading.Event()
            self._wait = self.minwait
            self._state = LoopState.WAITING
            self._thread = threading.Thread(
                target=self._run, args=(self._cancel,), name='entstore-reconnect', daemon=True
            )
            thread = self._thread
        logger.debug('attempting db reconnect')
        thread.start()
        return True

    def cancel(self, timeout: Optional[float] = None):
        """Stop a running loop without waiting, or wait up to timeout seconds for its thread."""
        with self._lock:
            cancel, thread = self._cancel, self._thread
            if cancel is not None:
                cancel.set()
            self._state = LoopState.IDLE
            self._wait = self.minwait
            self._cancel = None
            self._thread = None
        if timeout is not None and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def join(self, timeout: Optional[float] = None):
        with self._lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _current(self, cancel: threading.Event) -> bool:
        return self._cancel is cancel and not cancel.is_set()

    def _run(self, cancel: threading.Event):
        try:
            self._loop(cancel)
        finally:
            with self._lock:
                if self._cancel is cancel:
                    self._state = LoopState.IDLE
                    self._cancel = None
                    self._thread = None

    def _loop(self, cancel: threading.Event):
        while True:
            with self._lock:
                if not self._current(cancel):
                    return
                self._state = LoopState.WAITING
                wait = self._wait
            if cancel.wait(wait / 1000.0):
                return
            with self._lock:
                if not self._current(cancel):
                    return
                self._state = LoopState.ATTEMPTING
                self.attempts += 1
            try:
                self._attempt(cancel)
            except Exception as e:
                with self._lock:
                    if not self._current(cancel):
                        return
                    self._wait = min(2 * self._wait, self.maxwait)
                    next_wait = self._wait
                logger.warning(f'db reconnect (wait {wait}ms) failed: {e!r}; next attempt in {next_wait}ms')
                continue
            with self._lock:
                if self._current(cancel):
                    self._wait = self.minwait
            logger.debug('reconnect ok')
            return
