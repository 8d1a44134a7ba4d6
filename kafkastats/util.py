"""Time helpers shared across the package."""

from __future__ import annotations

import functools
import time as _time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

__all__ = ["Timeout", "millis_to_epoch", "current_time_millis"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLI = timedelta(milliseconds=1)


def _to_i32(value: int) -> int:
    """Wrap an integer into the signed 32-bit range."""
    return ((value + 2**31) % 2**32) - 2**31


@functools.total_ordering
@dataclass(frozen=True)
class Timeout:
    """A timeout for an operation: either a finite duration or never.

    A ``duration`` of ``None`` means the operation blocks forever.
    Finite timeouts order by duration and always sort before ``never``.
    """

    duration: timedelta | None = None

    def __post_init__(self) -> None:
        if self.duration is not None:
            if not isinstance(self.duration, timedelta):
                raise TypeError("duration must be a timedelta or None")
            if self.duration < timedelta(0):
                raise ValueError("timeout duration cannot be negative")

    @classmethod
    def never(cls) -> Timeout:
        """A timeout that never elapses."""
        return cls(None)

    @classmethod
    def after(cls, duration: timedelta) -> Timeout:
        """A timeout that elapses after ``duration``."""
        if duration is None:
            raise TypeError("duration must be a timedelta")
        return cls(duration)

    @classmethod
    def from_value(cls, value: Timeout | timedelta | None) -> Timeout:
        """Build a timeout from a timedelta, ``None`` (never) or a timeout."""
        if isinstance(value, Timeout):
            return value
        if value is None:
            return cls.never()
        if isinstance(value, timedelta):
            return cls.after(value)
        raise TypeError(f"cannot convert {type(value).__name__} to Timeout")

    @property
    def is_never(self) -> bool:
        return self.duration is None

    def as_millis(self) -> int:
        """The timeout in milliseconds as a signed 32-bit value; -1 for never."""
        if self.duration is None:
            return -1
        return _to_i32(self.duration // _ONE_MILLI)

    def __sub__(self, other: Timeout | timedelta) -> Timeout:
        if isinstance(other, timedelta):
            other = Timeout.after(other)
        if not isinstance(other, Timeout):
            return NotImplemented
        if other.duration is None:
            raise ValueError("subtraction of Timeout.never is ill-defined")
        if self.duration is None:
            return self
        remaining = self.duration - other.duration
        if remaining < timedelta(0):
            raise ValueError("timeout subtraction would be negative")
        return Timeout(remaining)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Timeout):
            return NotImplemented
        if self.duration is None:
            return False
        if other.duration is None:
            return True
        return self.duration < other.duration

    def __repr__(self) -> str:
        if self.duration is None:
            return "Timeout.never()"
        return f"Timeout.after({self.duration!r})"


def millis_to_epoch(time: datetime) -> int:
    """Milliseconds since the Unix epoch; times before the epoch give 0.

    Naive datetimes are taken to be in local time.
    """
    aware = time if time.tzinfo is not None else time.astimezone()
    delta = aware - _EPOCH
    if delta < timedelta(0):
        return 0
    return delta // _ONE_MILLI


def current_time_millis() -> int:
    """The current time in milliseconds since the Unix epoch."""
    return _time.time_ns() // 1_000_000