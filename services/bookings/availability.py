"""Conflict detection for a proposed window against existing bookings."""
from __future__ import annotations

from typing import Iterable, List

from common.models import Booking

from .intervals import TimeWindow, overlaps
from .store import BookingStore


def window_of(booking: Booking) -> TimeWindow:
    return TimeWindow(booking.booking_date, booking.start_time, booking.end_time)


def find_conflicts(window: TimeWindow, bookings: Iterable[Booking]) -> List[Booking]:
    """Return the bookings whose window overlaps ``window``."""
    return [booking for booking in bookings if overlaps(window, window_of(booking))]


def is_available(store: BookingStore, room_id: int, window: TimeWindow) -> bool:
    active = store.find_active_by_room_and_date(room_id, window.booking_date)
    return not find_conflicts(window, active)
