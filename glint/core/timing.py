from dataclasses import dataclass


@dataclass
class IntervalTimer:
    """
    Frame-driven repeating timer.

    Nothing runs in the background: the owner calls `poll(now)` from its
    update loop and does the work when it returns True.
    """

    interval: float

    _next_at: float | None = None

    def start(self, now: float) -> None:
        """Arm the timer; the first tick is one interval from `now`."""
        self._next_at = now + self.interval

    def cancel(self) -> None:
        self._next_at = None

    @property
    def active(self) -> bool:
        return self._next_at is not None

    def poll(self, now: float) -> bool:
        """
        Returns True at most once per call when the deadline has passed.
        """
        if self._next_at is None or now < self._next_at:
            return False

        # Skip ticks missed during a long stall instead of firing a burst.
        while self._next_at <= now:
            self._next_at += self.interval

        return True
