"""Unit tests for AuthService.

Tests bcrypt password hashing and access/refresh JWT issuing and
verification, including the failure kinds the verifier reports.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from accounts.errors import AccountError, ErrorKind
from accounts.models.auth import MAX_PASSWORD_BYTES
from accounts.models.user import User
from accounts.services.auth_service import (
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    AuthService,
    TokenType,
)


def _make_user(**overrides) -> User:
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid4(),
        username="alice",
        email="a@x.com",
        full_name="Alice Example",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return User(**fields)


def _encode(payload: dict, secret: str) -> str:
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    """Tests for bcrypt hash_password / verify_password."""

    def test_hash_password_uses_fixed_work_factor(self, auth_service):
        hashed = auth_service.hash_password("secret1")
        assert hashed.startswith(f"$2b${BCRYPT_ROUNDS:02d}$")
        assert len(hashed) == 60

    def test_hash_password_different_salts(self, auth_service):
        h1 = auth_service.hash_password("same-password")
        h2 = auth_service.hash_password("same-password")
        assert h1 != h2, "Each call should produce a unique salt"

    def test_verify_password_correct(self, auth_service):
        hashed = auth_service.hash_password("secret1")
        assert auth_service.verify_password("secret1", hashed) is True

    def test_verify_password_wrong(self, auth_service):
        hashed = auth_service.hash_password("secret1")
        assert auth_service.verify_password("secret2", hashed) is False

    def test_verify_password_corrupt_hash_is_internal_error(self, auth_service):
        with pytest.raises(AccountError) as exc_info:
            auth_service.verify_password("secret1", "not-a-bcrypt-hash")
        assert exc_info.value.kind is ErrorKind.INTERNAL
        assert exc_info.value.status_code == 500

    def test_verify_overlong_password_is_mismatch(self, auth_service):
        hashed = auth_service.hash_password("secret1")
        assert auth_service.verify_password("x" * 80, hashed) is False

    def test_max_length_password_round_trips(self, auth_service):
        password = "p" * MAX_PASSWORD_BYTES
        hashed = auth_service.hash_password(password)
        assert auth_service.verify_password(password, hashed) is True

    def test_hash_overlong_password_is_bad_request(self, auth_service):
        # 37 two-byte characters is 74 bytes
        with pytest.raises(AccountError) as exc_info:
            auth_service.hash_password("é" * 37)
        assert exc_info.value.kind is ErrorKind.BAD_REQUEST


# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------

class TestAccessToken:
    """Tests for access token creation and validation."""

    def test_round_trip_preserves_identity(self, auth_service):
        user = _make_user()
        token = auth_service.create_access_token(user)
        claims = auth_service.validate_access_token(token)

        assert claims["sub"] == str(user.id)
        assert claims["username"] == "alice"
        assert claims["email"] == "a@x.com"
        assert claims["full_name"] == "Alice Example"
        assert claims["type"] == "access"

    def test_lifetime_matches_settings(self, auth_service):
        token = auth_service.create_access_token(_make_user())
        claims = auth_service.validate_access_token(token)
        assert claims["exp"] - claims["iat"] == 15 * 60

    def test_signed_with_access_secret(self, auth_service, settings):
        token = auth_service.create_access_token(_make_user())
        # Decodes with the access secret, not the refresh one
        jwt.decode(token, settings.access_token_secret, algorithms=[JWT_ALGORITHM])
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, settings.refresh_token_secret, algorithms=[JWT_ALGORITHM])

    def test_expired_token_reports_expired(self, auth_service, settings):
        now = datetime.now(timezone.utc)
        expired = _encode(
            {
                "sub": str(uuid4()),
                "type": "access",
                "iat": now - timedelta(hours=1),
                "exp": now - timedelta(minutes=1),
            },
            settings.access_token_secret,
        )

        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_access_token(expired)

        assert exc_info.value.kind is ErrorKind.TOKEN_EXPIRED
        assert "expired" in exc_info.value.message

    def test_tampered_token_reports_invalid(self, auth_service):
        now = datetime.now(timezone.utc)
        forged = _encode(
            {
                "sub": str(uuid4()),
                "type": "access",
                "iat": now,
                "exp": now + timedelta(minutes=15),
            },
            "attacker-secret-attacker-secret-attacker",
        )

        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_access_token(forged)

        assert exc_info.value.kind is ErrorKind.INVALID_TOKEN

    def test_expired_and_forged_reports_invalid(self, auth_service):
        """Signature is checked before expiry."""
        now = datetime.now(timezone.utc)
        token = _encode(
            {
                "sub": str(uuid4()),
                "type": "access",
                "iat": now - timedelta(hours=1),
                "exp": now - timedelta(minutes=1),
            },
            "attacker-secret-attacker-secret-attacker",
        )

        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_access_token(token)

        assert exc_info.value.kind is ErrorKind.INVALID_TOKEN

    @pytest.mark.parametrize("garbage", ["not.a.jwt.token", "garbage", "a.b.c"])
    def test_garbage_reports_malformed(self, auth_service, garbage):
        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_access_token(garbage)
        assert exc_info.value.kind is ErrorKind.TOKEN_MALFORMED

    def test_missing_subject_reports_invalid(self, auth_service, settings):
        now = datetime.now(timezone.utc)
        token = _encode(
            {"type": "access", "iat": now, "exp": now + timedelta(minutes=5)},
            settings.access_token_secret,
        )
        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_access_token(token)
        assert exc_info.value.kind is ErrorKind.INVALID_TOKEN

    def test_refresh_token_rejected_as_access_token(self, auth_service):
        token = auth_service.create_refresh_token(uuid4())
        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_access_token(token)
        assert exc_info.value.kind is ErrorKind.INVALID_TOKEN

    def test_wrong_type_claim_rejected(self, auth_service, settings):
        now = datetime.now(timezone.utc)
        token = _encode(
            {
                "sub": str(uuid4()),
                "type": "refresh",
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            settings.access_token_secret,
        )
        with pytest.raises(AccountError, match="wrong token type"):
            auth_service.validate_access_token(token)


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------

class TestRefreshToken:
    """Tests for refresh token creation and validation."""

    def test_carries_only_identity(self, auth_service):
        user_id = uuid4()
        token = auth_service.create_refresh_token(user_id)
        claims = auth_service.validate_refresh_token(token)

        assert claims["sub"] == str(user_id)
        assert set(claims) == {"sub", "type", "jti", "iat", "exp"}

    def test_lifetime_matches_settings(self, auth_service):
        claims = auth_service.validate_refresh_token(
            auth_service.create_refresh_token(uuid4())
        )
        assert claims["exp"] - claims["iat"] == 10 * 86400

    def test_each_token_unique(self, auth_service):
        user_id = uuid4()
        assert auth_service.create_refresh_token(user_id) != auth_service.create_refresh_token(user_id)

    def test_access_token_rejected_as_refresh_token(self, auth_service):
        token = auth_service.create_access_token(_make_user())
        with pytest.raises(AccountError) as exc_info:
            auth_service.validate_refresh_token(token)
        assert exc_info.value.kind is ErrorKind.INVALID_TOKEN

    def test_expired_refresh_reports_expired(self, auth_service, settings):
        now = datetime.now(timezone.utc)
        token = _encode(
            {
                "sub": str(uuid4()),
                "type": "refresh",
                "jti": "x",
                "iat": now - timedelta(days=11),
                "exp": now - timedelta(days=1),
            },
            settings.refresh_token_secret,
        )
        with pytest.raises(AccountError) as exc_info:
            auth_service.verify_token(token, TokenType.REFRESH)
        assert exc_info.value.kind is ErrorKind.TOKEN_EXPIRED


class TestIssueTokenPair:
    """Tests for issue_token_pair and subject_id."""

    def test_pair_tokens_are_distinct_and_bound_to_user(self, auth_service):
        user = _make_user()
        pair = auth_service.issue_token_pair(user)

        assert pair.access_token != pair.refresh_token
        access = auth_service.validate_access_token(pair.access_token)
        refresh = auth_service.validate_refresh_token(pair.refresh_token)
        assert AuthService.subject_id(access) == user.id
        assert AuthService.subject_id(refresh) == user.id

    def test_subject_id_rejects_non_uuid(self):
        with pytest.raises(AccountError) as exc_info:
            AuthService.subject_id({"sub": "not-a-uuid"})
        assert exc_info.value.kind is ErrorKind.INVALID_TOKEN
