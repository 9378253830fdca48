"""Booking admission: validation, availability and creation of bookings.

``BookingService`` is the single entry point that turns a booking request into
either a stored ``Booking`` or one of the errors in
``services.bookings.errors``. Admission runs as a linear pipeline:

1. required fields present
2. start time before end time
3. room exists
4. no active booking of the room overlaps the window
5. insert with status ``pending``

Steps 4 and 5 run while holding the ``(room_id, booking_date)`` admission lock
and a row lock on the room, so two concurrent requests for overlapping windows
cannot both be admitted.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date, time
from typing import Dict, Iterator, List, Optional, Tuple

from common.models import Booking, BookingStatus

from .availability import is_available
from .errors import ConflictError, NotFoundError, ValidationError
from .intervals import TimeWindow
from .rooms import RoomDirectory
from .store import BookingDraft, BookingFilter, BookingStore

logger = logging.getLogger(__name__)

LockKey = Tuple[int, date]


class AdmissionLocks:
    """Process-wide mutual exclusion per ``(room_id, booking_date)``.

    Entries are reference counted and dropped once no request holds or waits
    on them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[LockKey, Tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, room_id: int, booking_date: date) -> Iterator[None]:
        key = (room_id, booking_date)
        with self._guard:
            lock, users = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                lock, users = self._locks[key]
                if users <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class BookingService:
    def __init__(self, store: BookingStore, rooms: RoomDirectory, locks: AdmissionLocks) -> None:
        self.store = store
        self.rooms = rooms
        self.locks = locks

    def create_booking(
        self,
        requester_id: int,
        room_id: Optional[int],
        booking_date: Optional[date],
        start_time: Optional[time],
        end_time: Optional[time],
        purpose: Optional[str] = None,
    ) -> Booking:
        if room_id is None or booking_date is None or start_time is None or end_time is None:
            raise ValidationError("missing required fields")
        window = TimeWindow(booking_date, start_time, end_time)
        if not window.is_valid():
            raise ValidationError("invalid time range")
        if not self.rooms.exists(room_id):
            raise NotFoundError("room not found")

        with self.locks.hold(room_id, booking_date):
            self.store.lock_room(room_id)
            if not is_available(self.store, room_id, window):
                self.store.rollback()
                logger.info("Rejected booking of room %s at %s for user %s: conflict", room_id, window, requester_id)
                raise ConflictError("room not available")
            booking = self.store.insert(
                BookingDraft(
                    user_id=requester_id,
                    room_id=room_id,
                    booking_date=booking_date,
                    start_time=start_time,
                    end_time=end_time,
                    purpose=purpose,
                )
            )

        logger.info("Booking %s admitted: room %s at %s for user %s", booking.id, room_id, window, requester_id)
        return booking

    def cancel_booking(self, booking_id: int, requester_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.status == BookingStatus.CANCELLED:
            return booking
        booking = self.store.update_status(booking_id, BookingStatus.CANCELLED)
        logger.info("Booking %s cancelled by user %s", booking_id, requester_id)
        return booking

    def confirm_booking(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if booking.status == BookingStatus.CANCELLED:
            raise ConflictError("booking is cancelled")
        if booking.status == BookingStatus.CONFIRMED:
            return booking
        booking = self.store.update_status(booking_id, BookingStatus.CONFIRMED)
        logger.info("Booking %s confirmed", booking_id)
        return booking

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.store.get(booking_id)
        if booking is None:
            raise NotFoundError("booking not found")
        return booking

    def list_bookings(self, filters: Optional[BookingFilter] = None) -> List[Booking]:
        return self.store.list_bookings(filters)

    def check_availability(self, room_id: int, window: TimeWindow) -> bool:
        if not window.is_valid():
            raise ValidationError("invalid time range")
        if not self.rooms.exists(room_id):
            raise NotFoundError("room not found")
        return is_available(self.store, room_id, window)
