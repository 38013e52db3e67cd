import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CountdownTimer:
    """
    Cooperative once-per-second countdown.

    Nothing runs in the background: the owner either calls ``tick()`` once per
    second or calls ``poll()``, which applies one tick for every whole second
    elapsed on ``clock`` since the last applied tick. The transition to zero is
    an edge: ``on_expire`` fires on that single tick and the timer stops.
    """

    def __init__(
        self,
        seconds: int,
        on_expire: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if seconds <= 0:
            raise ValueError("Countdown needs a positive number of seconds")
        self.remaining = seconds
        self._on_expire = on_expire
        self._clock = clock
        self._anchor: Optional[float] = None
        self._running = False
        self._expired = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self) -> None:
        if self._running or self._expired:
            return
        self._running = True
        self._anchor = self._clock()

    def stop(self) -> None:
        self._running = False

    def tick(self) -> bool:
        """Decrement by one second. Returns False when the timer is not running."""
        if not self._running:
            return False
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self._running = False
            self._expired = True
            logger.info("Countdown reached zero")
            if self._on_expire is not None:
                self._on_expire()
        return True

    def poll(self) -> int:
        """Catch up with the clock; returns the number of ticks applied."""
        if not self._running:
            return 0
        due = int(self._clock() - self._anchor)
        applied = 0
        while applied < due and self.tick():
            applied += 1
        self._anchor += due
        return applied
