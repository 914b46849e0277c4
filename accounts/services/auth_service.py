"""Authentication service for JWT tokens and password hashing."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

import bcrypt
import jwt
import structlog

from accounts.config import Settings, get_settings
from accounts.errors import AccountError, ErrorKind
from accounts.models.auth import MAX_PASSWORD_BYTES, TokenPair
from accounts.models.user import User

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 8


class TokenType(str, Enum):
    """Value of the ``type`` claim, checked on verification."""

    ACCESS = "access"
    REFRESH = "refresh"


class AuthService:
    """Password hashing plus issuing and verifying access/refresh JWTs."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string (fresh salt per call)

        Raises:
            AccountError(bad_request): If the password exceeds MAX_PASSWORD_BYTES
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise AccountError(
                ErrorKind.BAD_REQUEST,
                f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes",
            )
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        A password longer than MAX_PASSWORD_BYTES can never have been
        hashed, so it simply does not match.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise

        Raises:
            AccountError(internal): If the stored hash is not a bcrypt hash
        """
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError as e:
            logger.error("password_hash_corrupt", error=str(e))
            raise AccountError(ErrorKind.INTERNAL, "Stored password hash is invalid") from e

    def _secret_for(self, token_type: TokenType) -> str:
        if token_type is TokenType.ACCESS:
            return self.settings.access_token_secret
        return self.settings.refresh_token_secret

    def create_access_token(self, user: User) -> str:
        """Create a signed JWT access token carrying the user's identity.

        Args:
            user: The authenticated user

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        ttl = self.settings.access_token_ttl
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "full_name": user.full_name,
            "type": TokenType.ACCESS.value,
            "iat": now,
            "exp": now + ttl,
        }
        token = jwt.encode(
            payload, self.settings.access_token_secret, algorithm=JWT_ALGORITHM
        )
        logger.debug(
            "access_token_created",
            user_id=str(user.id),
            expires_seconds=int(ttl.total_seconds()),
        )
        return token

    def create_refresh_token(self, user_id: UUID) -> str:
        """Create a signed JWT refresh token.

        Only the user id is embedded; ``jti`` makes every token unique even
        when two are minted within the same second.

        Args:
            user_id: User UUID (placed in 'sub' claim)

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "type": TokenType.REFRESH.value,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + self.settings.refresh_token_ttl,
        }
        return jwt.encode(
            payload, self.settings.refresh_token_secret, algorithm=JWT_ALGORITHM
        )

    def issue_token_pair(self, user: User) -> TokenPair:
        """Mint a new access and refresh token for the user."""
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user.id),
        )

    def verify_token(self, token: str, token_type: TokenType) -> dict:
        """Decode and validate a JWT of the given type.

        Args:
            token: Encoded JWT string
            token_type: Which secret to check against and the required
                'type' claim

        Returns:
            Decoded claims

        Raises:
            AccountError(token_expired): Signature valid but past 'exp'
            AccountError(token_malformed): Not a parseable JWT
            AccountError(invalid_token): Bad signature, wrong token type,
                or missing claims
        """
        label = token_type.value.capitalize()
        try:
            payload = jwt.decode(
                token,
                self._secret_for(token_type),
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AccountError(
                ErrorKind.TOKEN_EXPIRED, f"{label} token has expired"
            ) from e
        except jwt.InvalidSignatureError as e:
            raise AccountError(
                ErrorKind.INVALID_TOKEN, f"Invalid {token_type.value} token: {e}"
            ) from e
        except jwt.DecodeError as e:
            # InvalidSignatureError subclasses DecodeError and is handled above
            raise AccountError(
                ErrorKind.TOKEN_MALFORMED, f"Malformed {token_type.value} token: {e}"
            ) from e
        except jwt.InvalidTokenError as e:
            raise AccountError(
                ErrorKind.INVALID_TOKEN, f"Invalid {token_type.value} token: {e}"
            ) from e

        if payload.get("type") != token_type.value:
            raise AccountError(
                ErrorKind.INVALID_TOKEN,
                f"Invalid {token_type.value} token: wrong token type",
            )
        return payload

    def validate_access_token(self, token: str) -> dict:
        """Verify an access token; see verify_token for failure kinds."""
        return self.verify_token(token, TokenType.ACCESS)

    def validate_refresh_token(self, token: str) -> dict:
        """Verify a refresh token; see verify_token for failure kinds."""
        return self.verify_token(token, TokenType.REFRESH)

    @staticmethod
    def subject_id(claims: dict) -> UUID:
        """Parse the 'sub' claim as a user UUID.

        Raises:
            AccountError(invalid_token): If 'sub' is not a UUID
        """
        try:
            return UUID(str(claims["sub"]))
        except (KeyError, ValueError) as e:
            raise AccountError(
                ErrorKind.INVALID_TOKEN, "Invalid token payload"
            ) from e
