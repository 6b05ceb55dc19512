import threading
import time
from typing import Callable


class RateGate:
    """
    Politeness throttle shared by every call to the LegiScan API.

    ``acquire()`` blocks until at least ``min_interval`` seconds have passed
    since the previous acquire started. Callers on different threads are
    serialized by a lock, so concurrent syncs queue behind one another.
    """

    def __init__(
        self,
        min_interval: float = 1.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0. Got {min_interval}.")
        self.min_interval = float(min_interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call = None

    def acquire(self) -> None:
        with self._lock:
            now_m = self._clock()
            if self._last_call is not None and self.min_interval > 0.0:
                wait = self.min_interval - (now_m - self._last_call)
                if wait > 0:
                    self._sleep(wait)
                    now_m = self._clock()
            self._last_call = now_m
