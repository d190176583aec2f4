"""ManualClock — управляемое время для тестов и симуляций."""

DEFAULT_START = 1_700_000_000


class ManualClock:
    """Callable источник unix-времени; двигается только явно."""

    def __init__(self, start: int = DEFAULT_START):
        self._now = start

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("time cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("time cannot move backwards")
        self._now = timestamp
