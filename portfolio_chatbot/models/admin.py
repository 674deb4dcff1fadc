"""Admin account models."""

from datetime import UTC, datetime

from pydantic import BaseModel, EmailStr, Field


class Admin(BaseModel):
    """Admin account allowed to manage documents."""
    id: str | None = Field(default=None, alias="_id")
    email: EmailStr
    username: str
    password_hash: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_login: datetime | None = None
    is_active: bool = True

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        arbitrary_types_allowed = True


class AdminLogin(BaseModel):
    """Admin login model."""

    email: EmailStr
    password: str


class AccessToken(BaseModel):
    """Issued bearer token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
