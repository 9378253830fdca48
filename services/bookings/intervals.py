"""Time windows on a calendar date and their overlap rule."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time


@dataclass(frozen=True)
class TimeWindow:
    booking_date: date
    start_time: time
    end_time: time

    def is_valid(self) -> bool:
        # Stored times are naive wall-clock times; offsets cannot be compared with them.
        if self.start_time.tzinfo is not None or self.end_time.tzinfo is not None:
            return False
        return self.start_time < self.end_time

    def overlaps(self, other: TimeWindow) -> bool:
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"{self.booking_date.isoformat()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    """Return True if the two windows share any time on the same date.

    Windows are half-open, so one ending exactly when the other starts is not
    a conflict.
    """
    if a.booking_date != b.booking_date:
        return False
    return a.start_time < b.end_time and b.start_time < a.end_time
