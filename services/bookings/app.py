from contextlib import asynccontextmanager
from datetime import date, time
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from common.cache import SimpleTTLCache
from common.config import get_settings
from common.database import Base, engine, get_db
from common.dependencies import allow_roles, ensure_owner_or_roles, get_current_identity
from common.logging_middleware import add_audit_middleware
from common.models import Booking, BookingStatus, RoleEnum
from common.rate_limit import apply_rate_limiter, limiter
from common.schemas import AvailabilityRead, BookingCreate, BookingRead, TokenData

from .admission import AdmissionLocks, BookingService
from .errors import BookingError, booking_error_handler
from .intervals import TimeWindow
from .rooms import RoomDirectory
from .store import BookingFilter, BookingStore

settings = get_settings()
admission_locks = AdmissionLocks()
room_cache: SimpleTTLCache[bool] = SimpleTTLCache(ttl=settings.room_cache_ttl)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Bookings Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, "bookings")
    fastapi_app.add_exception_handler(BookingError, booking_error_handler)
    Instrumentator().instrument(fastapi_app).expose(fastapi_app)
    return fastapi_app


app = create_app()


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(BookingStore(db), RoomDirectory(db, room_cache), admission_locks)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "bookings"}


@app.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    booking_in: BookingCreate,
    identity: TokenData = Depends(get_current_identity),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.create_booking(
        requester_id=identity.user_id,
        room_id=booking_in.room_id,
        booking_date=booking_in.booking_date,
        start_time=booking_in.start_time,
        end_time=booking_in.end_time,
        purpose=booking_in.purpose,
    )


@app.get("/bookings", response_model=List[BookingRead])
@limiter.limit("30/minute")
def list_bookings(
    request: Request,
    room_id: Optional[int] = None,
    booking_date: Optional[date] = None,
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    user_id: Optional[int] = None,
    _: TokenData = Depends(allow_roles(RoleEnum.ADMIN, RoleEnum.FACILITY_MANAGER, RoleEnum.AUDITOR)),
    service: BookingService = Depends(get_booking_service),
) -> List[Booking]:
    filters = BookingFilter(user_id=user_id, room_id=room_id, booking_date=booking_date, status=booking_status)
    return service.list_bookings(filters)


@app.get("/bookings/me", response_model=List[BookingRead])
@limiter.limit("30/minute")
def list_my_bookings(
    request: Request,
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    identity: TokenData = Depends(get_current_identity),
    service: BookingService = Depends(get_booking_service),
) -> List[Booking]:
    return service.list_bookings(BookingFilter(user_id=identity.user_id, status=booking_status))


@app.get("/bookings/availability", response_model=AvailabilityRead)
@limiter.limit("40/minute")
def check_availability(
    request: Request,
    room_id: int,
    booking_date: date = Query(...),
    start_time: time = Query(...),
    end_time: time = Query(...),
    _: TokenData = Depends(get_current_identity),
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityRead:
    window = TimeWindow(booking_date, start_time, end_time)
    available = service.check_availability(room_id, window)
    return AvailabilityRead(
        room_id=room_id,
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        available=available,
    )


@app.get("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("30/minute")
def get_booking(
    request: Request,
    booking_id: int,
    identity: TokenData = Depends(get_current_identity),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    booking = service.get_booking(booking_id)
    ensure_owner_or_roles(identity, booking.user_id, frozenset({RoleEnum.ADMIN, RoleEnum.FACILITY_MANAGER, RoleEnum.AUDITOR}))
    return booking


@app.post("/bookings/{booking_id}/confirm", response_model=BookingRead)
@limiter.limit("20/minute")
def confirm_booking(
    request: Request,
    booking_id: int,
    _: TokenData = Depends(allow_roles(RoleEnum.ADMIN, RoleEnum.FACILITY_MANAGER)),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.confirm_booking(booking_id)


@app.delete("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("20/minute")
def cancel_booking(
    request: Request,
    booking_id: int,
    identity: TokenData = Depends(get_current_identity),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    booking = service.get_booking(booking_id)
    ensure_owner_or_roles(identity, booking.user_id)
    return service.cancel_booking(booking_id, identity.user_id)
