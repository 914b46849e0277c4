"""Session lifecycle: login, logout, refresh-token rotation, password change."""

import secrets
from typing import Optional
from uuid import UUID

import structlog

from accounts.errors import AccountError, ErrorKind
from accounts.models.auth import TokenPair
from accounts.models.user import User
from accounts.services.auth_service import AuthService
from accounts.services.user_service import UserService

logger = structlog.get_logger(__name__)


class SessionService:
    """Owns every read-modify-write of a user's stored refresh token.

    One live refresh token per user: login and refresh overwrite it,
    logout clears it. A presented refresh token is honoured only while it
    equals the stored value.
    """

    def __init__(
        self,
        user_service: Optional[UserService] = None,
        auth_service: Optional[AuthService] = None,
    ):
        self.auth_service = auth_service or AuthService()
        self.user_service = user_service or UserService(self.auth_service)

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Start a session from email and password.

        Args:
            email: Account email (case-insensitive)
            password: Plain-text password

        Returns:
            Tuple of (User, TokenPair)

        Raises:
            AccountError(not_found): No account with that email
            AccountError(invalid_credentials): Password mismatch
        """
        record = await self.user_service.get_by_email_or_username(email=email)
        if record is None:
            raise AccountError(ErrorKind.NOT_FOUND, "User does not exist")

        if not self.auth_service.verify_password(password, record.password_hash):
            logger.info("login_failed", user_id=str(record.id))
            raise AccountError(ErrorKind.INVALID_CREDENTIALS, "Invalid credentials")

        user = record.public()
        pair = self.auth_service.issue_token_pair(user)
        await self.user_service.set_refresh_token(user.id, pair.refresh_token)

        logger.info("user_logged_in", user_id=str(user.id), username=user.username)
        return user, pair

    async def logout(self, user_id: UUID) -> None:
        """Clear the stored refresh token. Safe to repeat."""
        await self.user_service.set_refresh_token(user_id, None)
        logger.info("user_logged_out", user_id=str(user_id))

    async def refresh(self, refresh_token: Optional[str]) -> tuple[User, TokenPair]:
        """Exchange the current refresh token for a new pair.

        Args:
            refresh_token: The presented refresh token

        Returns:
            Tuple of (User, new TokenPair)

        Raises:
            AccountError(unauthorized): No token presented
            AccountError(invalid_token): Token fails verification, is not
                the stored one, or was rotated concurrently
            AccountError(not_found): The token's account no longer exists
        """
        if not refresh_token:
            raise AccountError(ErrorKind.UNAUTHORIZED, "Refresh token is required")

        try:
            claims = self.auth_service.validate_refresh_token(refresh_token)
        except AccountError as e:
            raise AccountError(ErrorKind.INVALID_TOKEN, e.message, reason=e.kind) from e

        user_id = self.auth_service.subject_id(claims)
        record = await self.user_service.get_record_by_id(user_id)
        if record is None:
            raise AccountError(ErrorKind.NOT_FOUND, "User not found")

        stored = record.refresh_token or ""
        if not secrets.compare_digest(stored.encode("utf-8"), refresh_token.encode("utf-8")):
            logger.warning("refresh_token_reuse_detected", user_id=str(user_id))
            raise AccountError(ErrorKind.INVALID_TOKEN, "Refresh token is expired or used")

        user = record.public()
        pair = self.auth_service.issue_token_pair(user)

        swapped = await self.user_service.swap_refresh_token(
            user_id, expected=refresh_token, new_token=pair.refresh_token
        )
        if not swapped:
            logger.warning("refresh_token_rotation_conflict", user_id=str(user_id))
            raise AccountError(ErrorKind.INVALID_TOKEN, "Refresh token is expired or used")

        logger.info("refresh_token_rotated", user_id=str(user_id))
        return user, pair

    async def change_password(
        self, user_id: UUID, old_password: str, new_password: str
    ) -> None:
        """Replace the password after checking the current one.

        Raises:
            AccountError(not_found): Account does not exist
            AccountError(invalid_credentials): Old password mismatch
        """
        record = await self.user_service.get_record_by_id(user_id)
        if record is None:
            raise AccountError(ErrorKind.NOT_FOUND, "User not found")

        if not self.auth_service.verify_password(old_password, record.password_hash):
            raise AccountError(ErrorKind.INVALID_CREDENTIALS, "Invalid old password")

        await self.user_service.update_fields(user_id, password=new_password)
        logger.info("password_changed", user_id=str(user_id))
