"""Unit tests for the availability checker."""
from datetime import date, time
from unittest.mock import MagicMock

from common.models import Booking, BookingStatus
from services.bookings.availability import find_conflicts, is_available
from services.bookings.intervals import TimeWindow

DAY = date(2024, 6, 1)


def make_booking(start: str, end: str, booking_id: int = 1) -> Booking:
    return Booking(
        id=booking_id,
        user_id=1,
        room_id=1,
        booking_date=DAY,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        status=BookingStatus.PENDING,
    )


def proposed(start: str, end: str) -> TimeWindow:
    return TimeWindow(DAY, time.fromisoformat(start), time.fromisoformat(end))


class TestFindConflicts:
    """Test conflict selection against existing bookings."""

    def test_no_existing_bookings(self):
        assert find_conflicts(proposed("10:00", "11:00"), []) == []

    def test_returns_only_overlapping_bookings(self):
        morning = make_booking("09:00", "10:00", booking_id=1)
        midday = make_booking("10:30", "11:30", booking_id=2)
        evening = make_booking("17:00", "18:00", booking_id=3)

        conflicts = find_conflicts(proposed("10:00", "12:00"), [morning, midday, evening])

        assert conflicts == [midday]

    def test_adjacent_bookings_are_not_conflicts(self):
        before = make_booking("09:00", "10:00", booking_id=1)
        after = make_booking("11:00", "12:00", booking_id=2)

        assert find_conflicts(proposed("10:00", "11:00"), [before, after]) == []


class TestIsAvailable:
    """Test the store-backed availability decision."""

    def test_queries_store_for_room_and_date(self):
        store = MagicMock()
        store.find_active_by_room_and_date.return_value = []

        assert is_available(store, 7, proposed("10:00", "11:00")) is True
        store.find_active_by_room_and_date.assert_called_once_with(7, DAY)

    def test_unavailable_when_an_active_booking_overlaps(self):
        store = MagicMock()
        store.find_active_by_room_and_date.return_value = [make_booking("10:00", "11:00")]

        assert is_available(store, 1, proposed("10:30", "11:30")) is False

    def test_has_no_side_effects_on_store(self):
        store = MagicMock()
        store.find_active_by_room_and_date.return_value = [make_booking("10:00", "11:00")]

        is_available(store, 1, proposed("12:00", "13:00"))

        store.insert.assert_not_called()
        store.update_status.assert_not_called()
