"""Pydantic schemas for the booking API."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field

from .models import BookingStatus, RoleEnum


class TokenData(BaseModel):
    username: str
    user_id: int
    role: RoleEnum = RoleEnum.REGULAR


class BookingCreate(BaseModel):
    # Presence is checked by the admission service so a missing field is a 400, not a 422.
    room_id: Optional[int] = None
    booking_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    purpose: Optional[str] = Field(None, max_length=500)


class BookingRead(BaseModel):
    id: int
    user_id: int
    room_id: int
    booking_date: date
    start_time: time
    end_time: time
    purpose: Optional[str] = None
    status: BookingStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class AvailabilityRead(BaseModel):
    room_id: int
    booking_date: date
    start_time: time
    end_time: time
    available: bool
