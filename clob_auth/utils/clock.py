"""
Clock source for auth timestamps.

Wraps time.time() with an optional offset learned from the exchange's
/time endpoint, so header timestamps match what the server considers "now".
"""

import time
import threading
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class Clock:
    """Thread-safe unix-seconds clock with a server offset."""

    def __init__(self, time_fn: Optional[Callable[[], float]] = None):
        self._time_fn = time_fn or time.time
        self._offset = 0
        self._synced = False
        self._lock = threading.Lock()

    def now(self) -> int:
        """Current unix time in seconds, corrected by the server offset."""
        return int(self._time_fn()) + self._offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def synced(self) -> bool:
        return self._synced

    def sync(self, server_time: int) -> int:
        """
        Adopt the server's notion of now.

        Args:
            server_time: Server unix time in seconds

        Returns:
            New offset in seconds
        """
        with self._lock:
            self._offset = int(server_time) - int(self._time_fn())
            self._synced = True

        if self._offset:
            logger.info(f"Clock offset from server: {self._offset:+d}s")
        return self._offset


class FixedClock(Clock):
    """Clock frozen at a given instant. Handy for deterministic signing."""

    def __init__(self, timestamp: int):
        super().__init__(time_fn=lambda: timestamp)
