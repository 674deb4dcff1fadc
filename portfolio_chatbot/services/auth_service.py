"""Admin authentication service."""

from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from portfolio_chatbot.interfaces.auth_interface import AuthenticationInterface
from portfolio_chatbot.models.admin import AccessToken, Admin
from portfolio_chatbot.repositories.admin_repository import AdminRepository

TOKEN_ALGORITHM = "HS256"


class AuthenticationService(AuthenticationInterface):
    """Guards the document-management routes for the portfolio owner.

    Admin passwords are stored as bcrypt hashes; a successful login yields a
    signed access token that carries the admin's ID.
    """

    def __init__(
        self,
        admin_repository: AdminRepository,
        jwt_secret: str,
        token_expiry_hours: int = 24,
    ) -> None:
        """Set up token signing for the admin panel.

        Args:
            admin_repository: Store of admin accounts
            jwt_secret: Key that signs and verifies access tokens
            token_expiry_hours: How long an issued token stays valid
        """
        self.admin_repository = admin_repository
        self.jwt_secret = jwt_secret
        self.token_expiry_hours = token_expiry_hours

    async def authenticate(self, email: str, password: str) -> Admin | None:
        """Check login credentials and record the login time.

        Deactivated accounts are refused even with the right password.

        Args:
            email: Login email
            password: Plain-text password from the login form

        Returns:
            The matching active admin, or None when the login is refused
        """
        admin = await self.admin_repository.get_by_email(email)
        if admin is None or not admin.is_active:
            return None
        if not self._verify_password(password, admin.password_hash):
            return None

        await self.admin_repository.update_last_login(admin.id)
        return admin

    async def create_admin(self, email: str, username: str, password: str) -> Admin:
        """Register an account allowed to manage portfolio documents.

        Used by the ``create-admin`` CLI command; the password is hashed
        before anything is stored.
        """
        admin = Admin(
            email=email,
            username=username,
            password_hash=self._hash_password(password),
        )
        return await self.admin_repository.create(admin)

    async def validate_token(self, token: str) -> Admin | None:
        """Resolve the admin behind a bearer or cookie token.

        Args:
            token: Encoded access token

        Returns:
            The active admin the token was issued to, or None if the token is
            expired, tampered with or names an unknown or deactivated account
        """
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.InvalidTokenError:
            return None

        admin_id = payload.get("admin_id")
        if not admin_id:
            return None

        admin = await self.admin_repository.get_by_id(admin_id)
        if admin is None or not admin.is_active:
            return None
        return admin

    def generate_token(self, admin: Admin) -> AccessToken:
        """Issue an access token for a logged-in admin."""
        lifetime = timedelta(hours=self.token_expiry_hours)
        payload = {
            "admin_id": admin.id,
            "email": admin.email,
            "exp": datetime.now(UTC) + lifetime,
        }
        return AccessToken(
            access_token=jwt.encode(payload, self.jwt_secret, algorithm=TOKEN_ALGORITHM),
            expires_in=int(lifetime.total_seconds()),
        )

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

    def _verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
