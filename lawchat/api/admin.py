# =============================================================================
# Admin API — API Key Management
# =============================================================================
#
# ENDPOINTS:
#   GET    /auth/me              — which key is calling (any valid key)
#   POST   /admin/keys           — create; the raw key is returned only here
#   GET    /admin/keys           — list, newest first
#   PATCH  /admin/keys/{key_id}  — change name, scopes, active flag, expiry
#   DELETE /admin/keys/{key_id}  — remove the row
#
# Every /admin/keys route requires the "admin" scope through the router's
# dependencies. Revoking with is_active=false keeps the row for auditing.
# The first admin key is created with scripts/create_api_key.py.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lawchat.api.deps import get_current_api_key, require_scope
from lawchat.db.engine import get_async_session
from lawchat.db.models import ApiKey
from lawchat.models.requests import CreateApiKeyRequest, UpdateApiKeyRequest
from lawchat.models.responses import (
    ApiKeyCreatedResponse,
    ApiKeyListResponse,
    ApiKeyResponse,
    WhoAmIResponse,
)
from lawchat.services.auth import generate_api_key

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/keys",
    tags=["Admin"],
    dependencies=[Depends(require_scope("admin"))],
)
auth_router = APIRouter(tags=["Admin"])

# Columns that cannot be cleared with an explicit null
_REQUIRED_FIELDS = {"name", "is_active"}


@auth_router.get("/auth/me", response_model=WhoAmIResponse, summary="Describe the current API key")
async def who_am_i(
    api_key: ApiKey | None = Depends(get_current_api_key),
) -> WhoAmIResponse:
    if api_key is None:
        return WhoAmIResponse(authenticated=False)
    return WhoAmIResponse(
        authenticated=True,
        name=api_key.name,
        key_prefix=api_key.key_prefix,
        scopes=api_key.scopes,
    )


@router.post("", response_model=ApiKeyCreatedResponse, status_code=201, summary="Create an API key")
async def create_api_key(
    body: CreateApiKeyRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ApiKeyCreatedResponse:
    """Store a new key's hash and hand the raw key back once."""
    raw_key, key_prefix, key_hash = generate_api_key()

    row = ApiKey(
        name=body.name,
        key_prefix=key_prefix,
        key_hash=key_hash,
        scopes=body.scopes,
        is_active=True,
        expires_at=body.expires_at,
    )
    session.add(row)
    await session.commit()
    await session.refresh(row)

    logger.info("Created API key %s ('%s', scopes=%s)", row.key_prefix, row.name, row.scopes)
    summary = ApiKeyResponse.model_validate(row)
    return ApiKeyCreatedResponse(**summary.model_dump(), raw_key=raw_key)


@router.get("", response_model=ApiKeyListResponse, summary="List API keys")
async def list_api_keys(
    session: AsyncSession = Depends(get_async_session),
) -> ApiKeyListResponse:
    rows = (await session.execute(select(ApiKey).order_by(ApiKey.created_at.desc()))).scalars().all()
    keys = [ApiKeyResponse.model_validate(row) for row in rows]
    return ApiKeyListResponse(keys=keys, total=len(keys))


@router.patch("/{key_id}", response_model=ApiKeyResponse, summary="Update an API key")
async def update_api_key(
    key_id: int,
    body: UpdateApiKeyRequest,
    session: AsyncSession = Depends(get_async_session),
) -> ApiKeyResponse:
    """
    Apply the fields present in the body.

    Fields left out are unchanged; an explicit null clears expires_at or
    scopes (null scopes means full access).
    """
    row = await _load_key(session, key_id)

    changes = body.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        if value is None and field_name in _REQUIRED_FIELDS:
            continue
        setattr(row, field_name, value)

    await session.commit()
    await session.refresh(row)

    logger.info("Updated API key %s: %s", row.key_prefix, sorted(changes))
    return ApiKeyResponse.model_validate(row)


@router.delete("/{key_id}", status_code=204, summary="Delete an API key")
async def delete_api_key(
    key_id: int,
    session: AsyncSession = Depends(get_async_session),
) -> None:
    row = await _load_key(session, key_id)
    await session.delete(row)
    await session.commit()
    logger.info("Deleted API key %s ('%s')", row.key_prefix, row.name)


async def _load_key(session: AsyncSession, key_id: int) -> ApiKey:
    row = await session.get(ApiKey, key_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"API key {key_id} not found.")
    return row
