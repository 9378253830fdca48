"""Unit tests for token handling and caller identity."""
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from jose import jwt
from starlette.requests import Request

from common.auth import create_access_token, decode_token
from common.config import get_settings
from common.dependencies import allow_roles, ensure_owner_or_roles, get_current_identity
from common.models import RoleEnum
from common.rate_limit import caller_key
from common.schemas import TokenData

settings = get_settings()


def make_request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/bookings",
        "headers": [(key.lower().encode(), value.encode()) for key, value in headers.items()],
        "client": ("203.0.113.7", 50000),
    }
    return Request(scope)


class TestJWTTokens:
    """Test JWT token creation and decoding."""

    def test_create_access_token(self):
        token = create_access_token({"sub": "testuser", "user_id": 7, "role": "admin"})

        decoded = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        assert decoded["sub"] == "testuser"
        assert decoded["user_id"] == 7
        assert "exp" in decoded

    def test_create_token_with_custom_expiry(self):
        token = create_access_token({"sub": "user123"}, timedelta(minutes=30))

        decoded = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        assert decoded["exp"] > datetime.utcnow().timestamp()

    def test_decode_token_invalid(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token("invalid.token.here")

        assert exc_info.value.status_code == 401
        assert "Invalid token" in str(exc_info.value.detail)

    def test_decode_token_expired(self):
        token = create_access_token({"sub": "testuser"}, timedelta(hours=-1))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401


class TestIdentity:
    """Test identity resolution from token claims."""

    def test_identity_from_claims(self):
        token = create_access_token({"sub": "alice", "user_id": 3, "role": "facility_manager"})

        identity = get_current_identity(token)

        assert identity == TokenData(username="alice", user_id=3, role=RoleEnum.FACILITY_MANAGER)

    def test_role_defaults_to_regular(self):
        identity = get_current_identity(create_access_token({"sub": "bob", "user_id": 4}))

        assert identity.role == RoleEnum.REGULAR

    def test_missing_user_id_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(create_access_token({"sub": "carol"}))

        assert exc_info.value.status_code == 401

    def test_missing_subject_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_identity(create_access_token({"user_id": 5}))

        assert exc_info.value.status_code == 401


class TestAuthorization:
    """Test role and ownership checks."""

    def test_allow_roles(self):
        dependency = allow_roles(RoleEnum.ADMIN)
        admin = TokenData(username="root", user_id=1, role=RoleEnum.ADMIN)
        regular = TokenData(username="joe", user_id=2)

        assert dependency(admin) is admin
        with pytest.raises(HTTPException) as exc_info:
            dependency(regular)
        assert exc_info.value.status_code == 403

    def test_owner_passes(self):
        ensure_owner_or_roles(TokenData(username="joe", user_id=2), owner_id=2)

    def test_staff_passes(self):
        ensure_owner_or_roles(TokenData(username="fm", user_id=9, role=RoleEnum.FACILITY_MANAGER), owner_id=2)

    def test_stranger_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            ensure_owner_or_roles(TokenData(username="eve", user_id=3), owner_id=2)

        assert exc_info.value.status_code == 403


class TestRateLimitKey:
    """Test the rate limiting bucket key."""

    def test_keyed_by_token_subject(self):
        token = create_access_token({"sub": "alice", "user_id": 3})

        assert caller_key(make_request({"Authorization": f"Bearer {token}"})) == "user:alice"

    def test_falls_back_to_client_address(self):
        assert caller_key(make_request({})) == "203.0.113.7"

    def test_garbage_token_falls_back_to_client_address(self):
        assert caller_key(make_request({"Authorization": "Bearer garbage"})) == "203.0.113.7"
