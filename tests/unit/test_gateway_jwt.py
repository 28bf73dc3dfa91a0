"""Unit tests for JWT handling and the caller-identity dependencies."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.fs_common.errors import (
    InvalidCredentialsError,
    OperatorRequiredError,
    SchedulerUnauthorizedError,
)
from src.fs_gateway.auth.dependencies import (
    Principal,
    get_current_user,
    require_operator,
    require_scheduler,
)
from src.fs_gateway.auth.jwt_handler import create_access_token, decode_access_token


def _encode(**claims) -> str:
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def test_access_token_claims() -> None:
    token = create_access_token("u_1", "one@example.com", role="operator")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "u_1"
    assert payload["email"] == "one@example.com"
    assert payload["role"] == "operator"
    assert payload["type"] == "access"


def test_decode_round_trip() -> None:
    payload = decode_access_token(create_access_token("u_1", "one@example.com"))
    assert payload["sub"] == "u_1"


def test_expired_token_rejected() -> None:
    past = datetime.now(UTC) - timedelta(hours=1)
    token = _encode(sub="u_1", type="access", exp=past)
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_wrong_token_type_rejected() -> None:
    token = _encode(sub="u_1", type="refresh")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_tampered_signature_rejected() -> None:
    token = jwt.encode({"sub": "u_1", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


class TestDependencies:
    async def test_current_user_from_token(self) -> None:
        user = await get_current_user(create_access_token("u_1", "one@example.com"))
        assert user == Principal("u_1", "one@example.com", "bidder")
        assert user.is_operator is False

    async def test_bad_token_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("not-a-token")
        assert exc_info.value.status_code == 401

    async def test_operator_required(self) -> None:
        with pytest.raises(OperatorRequiredError):
            await require_operator(Principal("u_1", "one@example.com", "bidder"))
        op = Principal("op_1", "ops@example.com", "operator")
        assert await require_operator(op) is op

    async def test_scheduler_token(self) -> None:
        await require_scheduler(f"Bearer {settings.CLEARING_SCHEDULER_TOKEN}")
        with pytest.raises(SchedulerUnauthorizedError):
            await require_scheduler("Bearer wrong")
        with pytest.raises(SchedulerUnauthorizedError):
            await require_scheduler(None)
