import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./test-logs")

from common.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from common.auth import create_access_token  # noqa: E402
from common.database import Base, SessionLocal, engine  # noqa: E402
from common.models import Room, RoleEnum  # noqa: E402
from services.bookings.app import app as bookings_app, room_cache  # noqa: E402


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    room_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def room(db_session) -> Room:
    room = Room(name="Focus Room", capacity=6, location="Floor 2", is_active=True)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture()
def bookings_client() -> Generator[TestClient, None, None]:
    with TestClient(bookings_app) as client:
        yield client


def auth_header(user_id: int, username: str, role: RoleEnum = RoleEnum.REGULAR) -> dict[str, str]:
    token = create_access_token({"sub": username, "user_id": user_id, "role": role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for() -> Callable[..., dict[str, str]]:
    return auth_header


@pytest.fixture()
def user_headers() -> dict[str, str]:
    return auth_header(1, "user1")


@pytest.fixture()
def other_user_headers() -> dict[str, str]:
    return auth_header(2, "user2")


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return auth_header(100, "admin", RoleEnum.ADMIN)
