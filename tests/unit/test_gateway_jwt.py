"""Unit tests for JWT handling and the auth dependencies."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.cl_common.enums import AccountRole
from src.cl_common.errors import InvalidCredentialsError, PermissionDeniedError
from src.cl_gateway.auth.dependencies import CurrentUser, get_current_user, require_admin
from src.cl_gateway.auth.jwt_handler import create_access_token, decode_access_token


def test_access_token_contains_correct_claims() -> None:
    payload = jwt.get_unverified_claims(create_access_token(2, AccountRole.CUSTOMER))
    assert payload["sub"] == "2"
    assert payload["role"] == "customer"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    payload = decode_access_token(create_access_token(1, "admin"))
    assert payload["sub"] == "1"
    assert payload["role"] == "admin"


def test_expired_token_raises_credentials_error() -> None:
    with patch("src.cl_gateway.auth.jwt_handler._ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token(2, "customer")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_tampered_token_raises_error() -> None:
    token = create_access_token(2, "customer")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token[:-4] + "xxxx")


def test_non_access_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "2", "role": "customer", "type": "refresh"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


class TestDependencies:
    async def test_current_user_from_token(self) -> None:
        user = await get_current_user(create_access_token(3, "collaborator"))
        assert user == CurrentUser(account_id=3, role="collaborator")
        assert user.is_admin is False

    async def test_bad_token_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("not-a-token")
        assert exc_info.value.status_code == 401

    async def test_non_numeric_subject_is_401(self) -> None:
        token = jwt.encode(
            {"sub": "abc", "role": "admin", "type": "access"},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(HTTPException):
            await get_current_user(token)

    async def test_require_admin(self) -> None:
        admin = CurrentUser(account_id=1, role="admin")
        assert await require_admin(admin) is admin
        with pytest.raises(PermissionDeniedError):
            await require_admin(CurrentUser(account_id=2, role="customer"))
