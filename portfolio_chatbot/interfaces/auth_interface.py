"""Authentication interface for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Optional

from portfolio_chatbot.models.admin import Admin


class AuthenticationInterface(ABC):
    """Abstract interface for admin authentication services."""

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> Optional[Admin]:
        """Authenticate admin with email and password.

        Args:
            email: Admin's email
            password: Admin's password

        Returns:
            Admin object if authentication successful, None otherwise
        """
        pass

    @abstractmethod
    async def create_admin(self, email: str, username: str, password: str) -> Admin:
        """Create a new admin account.

        Args:
            email: Unique email address
            username: Display name
            password: Admin's password

        Returns:
            Created Admin object
        """
        pass

    @abstractmethod
    async def validate_token(self, token: str) -> Optional[Admin]:
        """Validate authentication token.

        Args:
            token: JWT token

        Returns:
            Admin object if token valid, None otherwise
        """
        pass
