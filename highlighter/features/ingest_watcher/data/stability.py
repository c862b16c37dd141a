import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from ..domain.models import StabilityPolicy

logger = logging.getLogger(__name__)


def _stat_size(path: Path) -> int:
    return os.stat(path).st_size


def is_stable(path: Path,
              debounce_window: float,
              poll_interval: float,
              required_stable_samples: int,
              size_of: Callable[[Path], int] = _stat_size,
              sleep: Callable[[float], None] = time.sleep,
              clock: Callable[[], float] = time.monotonic) -> bool:
    """
    Polls the file size until it holds steady.

    The counter is the length of the current run of identical samples: it
    starts at 1 on the first sample, grows while the size repeats and drops
    back to 1 on a change. A failed stat counts as a change and empties the
    run. Returns True once the run reaches `required_stable_samples`, False
    once `debounce_window` seconds have elapsed without getting there.
    """
    started = clock()
    previous: Optional[int] = None
    run_length = 0

    while True:
        try:
            current: Optional[int] = size_of(path)
        except OSError as e:
            logger.debug(f"Stat failed for {path.name} ({e}); treating as a change")
            current = None

        if current is None:
            run_length = 0
        elif current == previous:
            run_length += 1
        else:
            run_length = 1
        previous = current

        if run_length >= required_stable_samples:
            return True

        if clock() - started >= debounce_window:
            return False

        sleep(poll_interval)


class StabilityDetector:
    """
    Binds a StabilityPolicy to is_stable. The clock and sleep are injectable
    so tests can drive the loop without waiting.
    """

    def __init__(self,
                 policy: StabilityPolicy,
                 size_of: Callable[[Path], int] = _stat_size,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.policy = policy
        self.size_of = size_of
        self.sleep = sleep
        self.clock = clock

    def wait_until_stable(self, path: Path) -> bool:
        return is_stable(
            path,
            debounce_window=self.policy.debounce_window_seconds,
            poll_interval=self.policy.poll_interval_seconds,
            required_stable_samples=self.policy.required_stable_samples,
            size_of=self.size_of,
            sleep=self.sleep,
            clock=self.clock,
        )
