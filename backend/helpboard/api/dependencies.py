"""API Dependencies — caller identity and lifecycle engine wiring for routes.

Invariants:
    - Every help-post route requires a resolved caller identity
    - One HelpPostLifecycle per request, bound to the request's DB session

Design Decisions:
    - HTTPBearer(auto_error=False): missing credentials become AuthenticationError
      so they share the uniform error envelope instead of FastAPI's default 403
"""

from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from helpboard.config import get_settings
from helpboard.core.domain_types import UserId
from helpboard.core.errors import AuthenticationError
from helpboard.infrastructure.database import get_db
from helpboard.infrastructure.help_post_store import SqlHelpPostStore
from helpboard.infrastructure.identity import JWTIdentityProvider
from helpboard.infrastructure.observability import LoggingLifecycleObserver
from helpboard.services.help_post_lifecycle import HelpPostLifecycle

security = HTTPBearer(auto_error=False)


@lru_cache
def get_identity_provider() -> JWTIdentityProvider:
    settings = get_settings()
    return JWTIdentityProvider(settings.jwt_secret, settings.jwt_algorithm)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    identity: JWTIdentityProvider = Depends(get_identity_provider),
) -> UserId:
    """Resolve the bearer token to a user id or raise AuthenticationError."""
    if not credentials:
        raise AuthenticationError("No token, authorization denied")
    return identity.resolve_caller(credentials.credentials)


async def get_lifecycle(
    db: AsyncSession = Depends(get_db),
) -> HelpPostLifecycle:
    settings = get_settings()
    return HelpPostLifecycle(
        SqlHelpPostStore(db),
        LoggingLifecycleObserver(),
        max_attempts=settings.store_max_attempts,
        max_page_size=settings.max_page_size,
    )
