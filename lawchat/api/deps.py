# =============================================================================
# Auth Dependencies — Bearer API Keys
# =============================================================================
#
#   get_current_api_key()  resolves the Authorization header to an ApiKey
#   check_scope()          raises 403 when a key lacks a scope
#   require_scope(scope)   dependency factory combining the two, used as
#                          dependencies=[Depends(require_scope("chat"))]
#
# With AUTH_ENABLED=false every request is anonymous: get_current_api_key
# returns None and scope checks pass.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lawchat.config import settings
from lawchat.db.engine import get_async_session
from lawchat.db.models import ApiKey
from lawchat.services.auth import hash_api_key

logger = logging.getLogger(__name__)

# auto_error=False: a missing header reaches get_current_api_key as None
_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _reject_unusable(api_key: ApiKey) -> None:
    if not api_key.is_active:
        raise HTTPException(status_code=403, detail="API key has been deactivated.")
    if api_key.expires_at is not None and api_key.expires_at < datetime.now(UTC):
        raise HTTPException(status_code=403, detail="API key has expired.")


async def get_current_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    session: AsyncSession = Depends(get_async_session),
) -> ApiKey | None:
    """
    Return the ApiKey behind the request's Bearer token.

    The raw token is hashed and looked up by hash. A usable key gets
    last_used_at stamped (committed with the request session) and is
    stored on request.state.api_key.

    Raises:
        HTTPException 401: No token, or the token matches no key.
        HTTPException 403: The key is deactivated or expired.
    """
    if not settings.auth_enabled:
        return None

    if credentials is None:
        raise _unauthorized("Missing API key. Send 'Authorization: Bearer <key>'.")

    result = await session.execute(
        select(ApiKey).where(ApiKey.key_hash == hash_api_key(credentials.credentials))
    )
    api_key = result.scalar_one_or_none()
    if api_key is None:
        raise _unauthorized("Invalid API key.")

    _reject_unusable(api_key)

    api_key.last_used_at = datetime.now(UTC)
    request.state.api_key = api_key
    logger.debug("Request authenticated as %s (%s)", api_key.key_prefix, api_key.name)
    return api_key


def check_scope(api_key: ApiKey | None, required_scope: str) -> None:
    """Raise 403 unless the key grants required_scope (None/empty scopes grant all)."""
    if api_key is None or not api_key.scopes:
        return
    if required_scope not in api_key.scopes:
        raise HTTPException(
            status_code=403,
            detail=f"API key does not have '{required_scope}' scope.",
        )


def require_scope(scope: str) -> Callable[..., Awaitable[ApiKey | None]]:
    """Build a route dependency that authenticates and enforces one scope."""

    async def _dependency(
        api_key: ApiKey | None = Depends(get_current_api_key),
    ) -> ApiKey | None:
        check_scope(api_key, scope)
        return api_key

    return _dependency
