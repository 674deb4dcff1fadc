"""Tests for authentication service."""

import bcrypt
import jwt
import pytest
from unittest.mock import AsyncMock, MagicMock

from portfolio_chatbot.models.admin import Admin
from portfolio_chatbot.services.auth_service import AuthenticationService

ADMIN_ID = "65f1c0ffee0000000000beef"


@pytest.fixture
def mock_admin_repository():
    """Mock admin repository."""
    return AsyncMock()


@pytest.fixture
def auth_service(mock_admin_repository):
    """Authentication service with mocked repository."""
    return AuthenticationService(
        admin_repository=mock_admin_repository,
        jwt_secret="test-secret"
    )


@pytest.fixture
def admin():
    return Admin(
        id=ADMIN_ID,
        email="owner@portfolio.dev",
        username="owner",
        password_hash="$2b$12$hashed_password",
        is_active=True
    )


@pytest.mark.asyncio
async def test_authenticate_valid_admin(auth_service, mock_admin_repository, admin):
    """Test authentication with valid admin."""
    # Arrange
    mock_admin_repository.get_by_email.return_value = admin
    auth_service._verify_password = MagicMock(return_value=True)

    # Act
    result = await auth_service.authenticate("owner@portfolio.dev", "password")

    # Assert
    assert result is not None
    assert result.username == "owner"
    mock_admin_repository.update_last_login.assert_called_once_with(ADMIN_ID)


@pytest.mark.asyncio
async def test_authenticate_invalid_password(auth_service, mock_admin_repository, admin):
    """Test authentication with invalid password."""
    # Arrange
    mock_admin_repository.get_by_email.return_value = admin
    auth_service._verify_password = MagicMock(return_value=False)

    # Act
    result = await auth_service.authenticate("owner@portfolio.dev", "wrong_password")

    # Assert
    assert result is None
    mock_admin_repository.update_last_login.assert_not_called()


@pytest.mark.asyncio
async def test_authenticate_inactive_admin(auth_service, mock_admin_repository, admin):
    """Test that deactivated admins cannot log in."""
    admin.is_active = False
    mock_admin_repository.get_by_email.return_value = admin

    assert await auth_service.authenticate("owner@portfolio.dev", "password") is None


@pytest.mark.asyncio
async def test_create_admin(auth_service, mock_admin_repository, admin):
    """Test admin creation."""
    # Arrange
    mock_admin_repository.create.return_value = admin
    auth_service._hash_password = MagicMock(return_value="$2b$12$hashed_password")

    # Act
    result = await auth_service.create_admin("owner@portfolio.dev", "owner", "password")

    # Assert
    assert result.email == "owner@portfolio.dev"
    auth_service._hash_password.assert_called_once_with("password")
    created = mock_admin_repository.create.call_args[0][0]
    assert created.password_hash == "$2b$12$hashed_password"


@pytest.mark.asyncio
async def test_token_round_trip(auth_service, mock_admin_repository, admin):
    """Test that an issued token resolves back to its admin."""
    # Arrange
    mock_admin_repository.get_by_id.return_value = admin

    # Act
    token = auth_service.generate_token(admin)
    result = await auth_service.validate_token(token.access_token)

    # Assert
    assert token.token_type == "bearer"
    assert token.expires_in == 24 * 3600
    assert result == admin
    mock_admin_repository.get_by_id.assert_called_once_with(ADMIN_ID)


@pytest.mark.asyncio
async def test_validate_token_rejects_bad_tokens(auth_service, mock_admin_repository):
    assert await auth_service.validate_token("not-a-token") is None

    foreign = jwt.encode({"admin_id": ADMIN_ID}, "other-secret", algorithm="HS256")
    assert await auth_service.validate_token(foreign) is None
    mock_admin_repository.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_validate_token_refuses_deactivated_or_expired(
    auth_service, mock_admin_repository, admin
):
    """Test that a token stops working once the admin is deactivated or it expires."""
    # Arrange
    token = auth_service.generate_token(admin).access_token
    admin.is_active = False
    mock_admin_repository.get_by_id.return_value = admin
    expired = AuthenticationService(
        admin_repository=mock_admin_repository,
        jwt_secret="test-secret",
        token_expiry_hours=-1,
    ).generate_token(admin)

    # Act / Assert
    assert await auth_service.validate_token(token) is None
    assert await auth_service.validate_token(expired.access_token) is None
    mock_admin_repository.get_by_id.assert_called_once_with(ADMIN_ID)


def test_password_hash_verification(auth_service):
    """Test real bcrypt hashing and a malformed stored hash."""
    password_hash = auth_service._hash_password("s3cret")

    assert bcrypt.checkpw(b"s3cret", password_hash.encode())
    assert auth_service._verify_password("s3cret", password_hash) is True
    assert auth_service._verify_password("wrong", password_hash) is False
    assert auth_service._verify_password("s3cret", "not-a-hash") is False
