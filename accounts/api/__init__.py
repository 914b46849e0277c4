"""API package exports."""

from accounts.api.auth import router as auth_router
from accounts.api.middleware import CorrelationIdMiddleware
from accounts.api.routes import router
from accounts.api.users import router as users_router

__all__ = ["router", "auth_router", "users_router", "CorrelationIdMiddleware"]
