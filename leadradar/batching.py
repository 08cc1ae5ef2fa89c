"""
Bounded-concurrency windows and cooperative cancellation.

Work is split into fixed-size windows; every item of a window runs
concurrently and the next window only starts once the current one has fully
completed. A CancellationToken is checked before each window starts.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

from .logging_setup import get_logger

logger = get_logger("batching")

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class SearchCancelled(Exception):
    """Search was cancelled or ran past its deadline."""
    pass


class CancellationToken:
    """
    Cooperative cancellation flag with an optional deadline.
    Safe to share between threads; cancel() may be called from a signal handler.
    """

    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_seconds if timeout_seconds else None
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise SearchCancelled(self.reason or "cancelled")

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`, waking early on cancel. Returns True if cancelled."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(seconds)
        return self.cancelled


def unique_in_order(
    items: Iterable[Optional[K]],
    key: Optional[Callable[[K], Hashable]] = None,
) -> List[K]:
    """
    Drop falsy and repeated items, keeping first-seen order.
    With a key, items are compared by key(item) and the first spelling is kept.
    """
    seen = set()
    unique: List[K] = []
    for item in items:
        if not item:
            continue
        marker = key(item) if key else item
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(item)
    return unique


def run_in_windows(
    items: List[K],
    func: Callable[[K], T],
    window_size: int,
    pause_seconds: float = 0.0,
    cancel_token: Optional[CancellationToken] = None,
    keep: Callable[[T], bool] = lambda result: True,
    label: str = "batch",
) -> Dict[K, T]:
    """
    Apply func to every item, window_size items at a time.

    Results for which keep() is false, and items whose call raised, are left
    out of the returned map. Each key is written at most once.

    Raises:
        SearchCancelled: if the token is cancelled before a window starts
    """
    window_size = max(1, int(window_size))
    results: Dict[K, T] = {}
    windows = [items[i:i + window_size] for i in range(0, len(items), window_size)]

    if not windows:
        return results

    with ThreadPoolExecutor(max_workers=window_size, thread_name_prefix=label) as executor:
        for index, window in enumerate(windows):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            logger.debug(f"{label}: window {index + 1}/{len(windows)} ({len(window)} items)")
            futures = [(item, executor.submit(func, item)) for item in window]

            for item, future in futures:
                try:
                    result = future.result()
                except Exception as e:
                    logger.error(f"{label}: unexpected error for {item}: {e}")
                    continue
                if keep(result):
                    results[item] = result

            is_last = index == len(windows) - 1
            if pause_seconds > 0 and not is_last:
                if cancel_token is not None:
                    cancel_token.wait(pause_seconds)
                else:
                    time.sleep(pause_seconds)

    return results
