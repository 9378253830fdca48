"""Persistence of booking records."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.models import ACTIVE_STATUSES, Booking, BookingStatus, Room

from .errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class BookingDraft:
    user_id: int
    room_id: int
    booking_date: date
    start_time: time
    end_time: time
    purpose: Optional[str] = None


@dataclass
class BookingFilter:
    user_id: Optional[int] = None
    room_id: Optional[int] = None
    booking_date: Optional[date] = None
    status: Optional[BookingStatus] = None


class BookingStore:
    """Booking table access through a single SQLAlchemy session.

    Only ``insert`` and ``update_status`` write. Overlap rules are not
    applied here; see ``services.bookings.availability``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def insert(self, draft: BookingDraft) -> Booking:
        booking = Booking(
            user_id=draft.user_id,
            room_id=draft.room_id,
            booking_date=draft.booking_date,
            start_time=draft.start_time,
            end_time=draft.end_time,
            purpose=draft.purpose,
            status=BookingStatus.PENDING,
        )
        try:
            self.db.add(booking)
            self.db.commit()
            self.db.refresh(booking)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to insert booking for room %s on %s", draft.room_id, draft.booking_date)
            raise PersistenceError("could not store booking") from exc
        return booking

    def find_active_by_room_and_date(self, room_id: int, booking_date: date) -> List[Booking]:
        try:
            return (
                self.db.query(Booking)
                .filter(
                    Booking.room_id == room_id,
                    Booking.booking_date == booking_date,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
                .all()
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to query bookings for room %s on %s", room_id, booking_date)
            raise PersistenceError("could not read bookings") from exc

    def update_status(self, booking_id: int, new_status: BookingStatus) -> Booking:
        booking = self.get(booking_id)
        if booking is None:
            raise NotFoundError("booking not found")
        try:
            booking.status = new_status
            self.db.commit()
            self.db.refresh(booking)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to set booking %s to %s", booking_id, new_status.value)
            raise PersistenceError("could not update booking") from exc
        return booking

    def get(self, booking_id: int) -> Optional[Booking]:
        try:
            return self.db.get(Booking, booking_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("could not read booking") from exc

    def list_bookings(self, filters: Optional[BookingFilter] = None) -> List[Booking]:
        query = self.db.query(Booking)
        if filters is not None:
            if filters.user_id is not None:
                query = query.filter(Booking.user_id == filters.user_id)
            if filters.room_id is not None:
                query = query.filter(Booking.room_id == filters.room_id)
            if filters.booking_date is not None:
                query = query.filter(Booking.booking_date == filters.booking_date)
            if filters.status is not None:
                query = query.filter(Booking.status == filters.status)
        try:
            return query.order_by(Booking.booking_date, Booking.start_time, Booking.id).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("could not list bookings") from exc

    def lock_room(self, room_id: int) -> None:
        """Hold a row lock on the room until the transaction ends.

        Serializes admissions across processes on PostgreSQL; SQLite ignores
        ``FOR UPDATE``.
        """
        try:
            self.db.query(Room.id).filter(Room.id == room_id).with_for_update().first()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("could not lock room") from exc

    def rollback(self) -> None:
        self.db.rollback()
