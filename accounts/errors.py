"""Error kinds and the account-level exception mapped to HTTP responses."""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure kinds surfaced by the account core.

    Callers branch on the kind rather than on exception subclasses.
    """

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_MALFORMED = "token_malformed"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.INVALID_TOKEN: 401,
    ErrorKind.TOKEN_EXPIRED: 401,
    ErrorKind.TOKEN_MALFORMED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class AccountError(Exception):
    """A failure with a stable kind, status code and readable message.

    Attributes:
        kind: The failure kind
        message: Human-readable description
        reason: Underlying kind when this error re-reports another one
            (e.g. an expired refresh token reported as invalid_token)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        reason: Optional[ErrorKind] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.reason = reason

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AccountError(kind={self.kind.value!r}, message={self.message!r})"
