# src/orgtree/http/throttle.py
import random
import time
import threading

# Statuses we retry (only when max_retries > 0)
RETRY_STATUSES = {429, 502, 503, 504}

DEFAULT_CAPACITY = 10


def compute_sleep_seconds(attempt: int, retry_after_header: str | None) -> float:
    # Honor Retry-After (integer seconds)
    if retry_after_header and retry_after_header.isdigit():
        return int(retry_after_header)
    base = min(2 ** attempt, 8)  # 1,2,4,8 cap
    return base * (0.6 + 0.8 * random.random())  # jitter 60–140%


def sleep_backoff(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)


class ConcurrencyGate:
    """
    Counting admission gate shared by every directory call of a run.
    Build one at startup and hand it to the HTTP client; `with gate:` holds a slot.
    """
    def __init__(self, capacity: int = DEFAULT_CAPACITY, pacing_delay: float = 0.0):
        self.capacity = max(1, int(capacity))
        self.pacing_delay = max(0.0, float(pacing_delay))
        self._sem = threading.Semaphore(self.capacity)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak(self) -> int:
        return self._peak

    def __enter__(self):
        self._sem.acquire()
        with self._lock:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)
        # flat pacing, not a backoff
        sleep_backoff(self.pacing_delay)
        return self

    def __exit__(self, exc_type, exc, tb):
        with self._lock:
            self._in_flight -= 1
        self._sem.release()
