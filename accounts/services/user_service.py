"""User account persistence service."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from accounts.database import get_pool
from accounts.errors import AccountError, ErrorKind
from accounts.models.user import User, UserRecord
from accounts.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

_PUBLIC_COLUMNS = (
    "id, username, email, full_name, avatar, cover_image, created_at, updated_at"
)
_RECORD_COLUMNS = f"{_PUBLIC_COLUMNS}, password_hash, refresh_token"


def normalize_identifier(value: str) -> str:
    """Usernames and emails are stored trimmed and lowercase."""
    return value.strip().lower()


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        full_name=row["full_name"],
        avatar=row["avatar"],
        cover_image=row["cover_image"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_record(row) -> UserRecord:
    return UserRecord(
        **_row_to_user(row).model_dump(),
        password_hash=row["password_hash"],
        refresh_token=row["refresh_token"],
    )


class UserService:
    """Service for user account storage.

    Refresh-token writes (set_refresh_token, swap_refresh_token) are
    reserved for SessionService.
    """

    def __init__(self, auth_service: Optional[AuthService] = None):
        self.auth_service = auth_service or AuthService()

    async def create_user(
        self,
        username: str,
        email: str,
        full_name: str,
        password: str,
        avatar: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> User:
        """Create a new account with a hashed password.

        Args:
            username: Unique username (normalized to lowercase)
            email: Unique email (normalized to lowercase)
            full_name: Display name
            password: Plain-text password (hashed once, here)
            avatar: Optional avatar image URL
            cover_image: Optional cover image URL

        Returns:
            Created User model

        Raises:
            AccountError(conflict): If the username or email is taken
        """
        username = normalize_identifier(username)
        email = normalize_identifier(email)
        full_name = full_name.strip()

        existing = await self.get_by_email_or_username(email=email, username=username)
        if existing is not None:
            logger.info("user_create_conflict", username=username)
            raise AccountError(ErrorKind.CONFLICT, "User with this email or username already exists")

        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = self.auth_service.hash_password(password)

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, username, email, full_name, avatar, cover_image,
                                       password_hash, refresh_token, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, NULL, $8, $9)
                    """,
                    user_id,
                    username,
                    email,
                    full_name,
                    avatar,
                    cover_image,
                    password_hash,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError as e:
            # Lost a race with a concurrent registration
            raise AccountError(ErrorKind.CONFLICT, "User with this email or username already exists") from e

        logger.info("user_created", user_id=str(user_id), username=username)

        return User(
            id=user_id,
            username=username,
            email=email,
            full_name=full_name,
            avatar=avatar,
            cover_image=cover_image,
            created_at=now,
            updated_at=now,
        )

    async def get_by_email_or_username(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> Optional[UserRecord]:
        """Find an account matching either identifier (case-insensitive).

        Returns:
            UserRecord including credential fields, or None
        """
        if email is None and username is None:
            return None

        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM users
                WHERE email = $1 OR username = $2
                LIMIT 1
                """,
                normalize_identifier(email) if email is not None else None,
                normalize_identifier(username) if username is not None else None,
            )

        if row is None:
            return None
        return _row_to_record(row)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get an account by id, without password or refresh token."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_PUBLIC_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def get_record_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        """Get an account by id including credential fields."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_RECORD_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        if row is None:
            return None
        return _row_to_record(row)

    async def update_fields(
        self,
        user_id: UUID,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        avatar: Optional[str] = None,
        cover_image: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Optional[User]:
        """Update the fields that are not None.

        The password is hashed only when a new one is supplied; other
        updates leave password_hash untouched.

        Returns:
            Updated User model, or None if the account does not exist

        Raises:
            AccountError(conflict): If the new email is taken
        """
        set_clauses = []
        params = []
        param_idx = 1

        if full_name is not None:
            set_clauses.append(f"full_name = ${param_idx}")
            params.append(full_name.strip())
            param_idx += 1

        if email is not None:
            set_clauses.append(f"email = ${param_idx}")
            params.append(normalize_identifier(email))
            param_idx += 1

        if avatar is not None:
            set_clauses.append(f"avatar = ${param_idx}")
            params.append(avatar)
            param_idx += 1

        if cover_image is not None:
            set_clauses.append(f"cover_image = ${param_idx}")
            params.append(cover_image)
            param_idx += 1

        if password is not None:
            set_clauses.append(f"password_hash = ${param_idx}")
            params.append(self.auth_service.hash_password(password))
            param_idx += 1

        if not set_clauses:
            return await self.get_by_id(user_id)

        fields_updated = [c.split(" = ")[0] for c in set_clauses]

        set_clauses.append(f"updated_at = ${param_idx}")
        params.append(datetime.now(timezone.utc))
        param_idx += 1

        params.append(user_id)

        query = f"""
            UPDATE users
            SET {', '.join(set_clauses)}
            WHERE id = ${param_idx}
            RETURNING {_PUBLIC_COLUMNS}
        """

        pool = await get_pool()

        try:
            async with pool.acquire() as conn:
                row = await conn.fetchrow(query, *params)
        except asyncpg.UniqueViolationError as e:
            raise AccountError(ErrorKind.CONFLICT, "Email is already in use") from e

        if row is None:
            return None

        logger.info("user_updated", user_id=str(user_id), fields_updated=fields_updated)
        return _row_to_user(row)

    async def set_refresh_token(self, user_id: UUID, token: Optional[str]) -> bool:
        """Overwrite the stored refresh token (None clears it).

        Returns:
            True if the account exists
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                "UPDATE users SET refresh_token = $1, updated_at = $2 WHERE id = $3",
                token,
                datetime.now(timezone.utc),
                user_id,
            )

        return result == "UPDATE 1"

    async def swap_refresh_token(
        self, user_id: UUID, expected: str, new_token: str
    ) -> bool:
        """Replace the stored refresh token only if it still equals ``expected``.

        A single conditional UPDATE, so of two concurrent swaps from the
        same expected value at most one succeeds.

        Returns:
            True if this call performed the swap
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE users
                SET refresh_token = $1, updated_at = $2
                WHERE id = $3 AND refresh_token = $4
                """,
                new_token,
                datetime.now(timezone.utc),
                user_id,
                expected,
            )

        return result == "UPDATE 1"
