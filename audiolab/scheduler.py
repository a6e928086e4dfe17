"""
Fixed-rate tick loop.

Runs a callback on a background thread at a steady rate. Anything else that
can call ``AnalysisEngine.tick()`` periodically (an asyncio timer, a GUI
timer, a test) works just as well.
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickLoop:
    """
    Calls ``callback`` every ``1 / rate_hz`` seconds on a daemon thread.

    A tick that raises is logged and the loop keeps going.

    Deadlines are absolute, so a slow tick shortens the following sleep
    instead of shifting every later tick. If a tick overruns a whole period
    the schedule restarts from now rather than bursting to catch up.
    """

    def __init__(self, callback: Callable[[], object], rate_hz: float,
                 name: str = "audiolab-tick"):
        if rate_hz <= 0:
            raise ValueError("rate_hz must be positive")
        self._callback = callback
        self._interval = 1.0 / rate_hz
        self._name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    def _run(self):
        next_deadline = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self._callback()
            except Exception:
                logger.exception("[TICK] Tick failed, continuing")
            self.ticks += 1

            next_deadline += self._interval
            delay = next_deadline - time.monotonic()
            if delay < 0:
                next_deadline = time.monotonic()
                delay = 0.0
            self._stop_event.wait(delay)

    def start(self):
        """Start ticking. Does nothing if already running."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self._name,
                                        daemon=True)
        self._thread.start()
        logger.debug("[TICK] Started at %.1f Hz", 1.0 / self._interval)

    def stop(self, join: bool = True, timeout: Optional[float] = None):
        """Stop ticking; with ``join`` wait for the current tick to finish."""
        self._stop_event.set()
        thread = self._thread
        if join and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.debug("[TICK] Stopped after %d ticks", self.ticks)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
