import time


class SystemClock:
    """Wall-clock ``Clock`` backed by ``time.time``."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """A ``Clock`` that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds
