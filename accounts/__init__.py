"""User accounts service with JWT access/refresh token sessions."""

__version__ = "0.1.0"
