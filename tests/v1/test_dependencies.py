# tests/v1/test_dependencies.py
"""Tests for API dependencies and JWT validation."""

from datetime import timedelta

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError, jwt

from threadline.api.v1.dependencies import get_current_user, get_optional_user
from threadline.core.security import create_access_token, decode_access_token
from threadline.core.settings import settings


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestAccessTokens:
    """Test token creation and decoding."""

    def test_round_trip(self):
        """A freshly issued token decodes to the same user id."""
        assert decode_access_token(create_access_token(42)) == 42

    def test_expired_token(self):
        """Expired tokens are rejected."""
        token = create_access_token(42, expires_delta=timedelta(minutes=-1))

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_token_without_subject(self):
        """Tokens lacking a subject are rejected."""
        token = jwt.encode({"foo": "bar"}, settings.secret_key, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_non_numeric_subject(self):
        """Subjects that are not user ids are rejected."""
        token = jwt.encode({"sub": "alice"}, settings.secret_key, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            decode_access_token(token)


class TestGetCurrentUser:
    """Test the get_current_user dependency function."""

    def test_get_current_user_success(self, db_session, test_user):
        """A valid token resolves to its user."""
        user = get_current_user(_credentials(create_access_token(test_user.id)), db_session)

        assert user.id == test_user.id

    def test_get_current_user_wrong_secret(self, db_session, test_user):
        """Tokens signed with another secret are rejected."""
        token = jwt.encode(
            {"sub": str(test_user.id)},
            "wrong_secret_key",
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_credentials(token), db_session)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.detail == "Could not validate credentials"

    def test_get_current_user_unknown_user(self, db_session):
        """Tokens for users that do not exist are rejected."""
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(_credentials(create_access_token(99999)), db_session)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.detail == "User not found"


class TestGetOptionalUser:
    """Test the get_optional_user dependency function."""

    def test_anonymous(self, db_session):
        """No credentials means an anonymous viewer."""
        assert get_optional_user(None, db_session) is None

    def test_authenticated(self, db_session, test_user):
        """Supplied credentials are validated like get_current_user."""
        user = get_optional_user(_credentials(create_access_token(test_user.id)), db_session)

        assert user.id == test_user.id

    def test_invalid_token_is_not_ignored(self, db_session):
        """A bad token on a read route is an error, not anonymity."""
        with pytest.raises(HTTPException):
            get_optional_user(_credentials("not.a.valid.jwt"), db_session)
