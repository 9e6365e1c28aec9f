"""Deadline value object for bounded waits."""

from __future__ import annotations

from dataclasses import dataclass
import time

__all__ = ["Deadline"]


@dataclass(slots=True, frozen=True)
class Deadline:
    """Immutable absolute expiry on the monotonic clock.

    Created once at the start of a wait; the loop only ever queries it.
    """

    started_at: float
    expires_at: float

    def __post_init__(self) -> None:
        if self.expires_at < self.started_at:
            msg = "Deadline expires_at must not precede started_at."
            raise ValueError(msg)

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        """Return a deadline *seconds* from now."""
        if seconds < 0:
            msg = f"Deadline duration must be >= 0, got {seconds}"
            raise ValueError(msg)
        now = time.monotonic()
        return cls(started_at=now, expires_at=now + seconds)

    @property
    def duration_s(self) -> float:
        return self.expires_at - self.started_at

    def is_overdue(self) -> bool:
        return time.monotonic() >= self.expires_at

    def time_left_s(self) -> float:
        """Return the remaining seconds, never negative."""
        return max(0.0, self.expires_at - time.monotonic())

    def elapsed_s(self) -> float:
        return time.monotonic() - self.started_at
