"""Recurring tasks driven by a background thread."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RecurringTask:
    """Runs a callback at a fixed interval on its own thread.

    A running cycle is never interrupted; stop() only prevents the next one
    and waits for the current one to finish. Exceptions from the callback are
    logged and the schedule continues.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "RecurringTask"):
        """Initialize task.

        Args:
            interval: Seconds between cycle starts
            callback: Function run once per cycle
            name: Thread name, shows up in logs
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name=self._name,
        )
        self._thread.start()
        logger.debug(f"{self._name} started (interval={self._interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop scheduling and wait for the current cycle.

        Args:
            timeout: Maximum seconds to wait for the thread, None for no limit
        """
        self._stop.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.debug(f"{self._name} stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            started = time.monotonic()
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Error in {self._name}: {e}", exc_info=True)

            elapsed = time.monotonic() - started
            self._stop.wait(max(0.0, self._interval - elapsed))
