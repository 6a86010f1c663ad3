# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# Shapes of data going OUT of the API. Embedding vectors and key hashes are
# never part of a response.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class UploadResponse(BaseModel):
    """Response for POST /upload."""

    document_name: str = Field(description="Uploaded filename, used as the document name")
    chunk_count: int = Field(description="Chunks produced by the legal text chunker")
    stored_count: int = Field(description="Chunks successfully stored with embeddings")
    failed_chunk_indices: list[int] = Field(
        default_factory=list,
        description="Indices of chunks whose insert failed and were skipped",
    )
    message: str


class DocumentSummary(BaseModel):
    """One stored document."""

    document_name: str
    chunk_count: int
    uploaded_at: datetime


class DocumentListResponse(BaseModel):
    """Response for GET /documents."""

    documents: list[DocumentSummary]
    total: int


class ChatResponse(BaseModel):
    """Response for POST /chat with stream=false."""

    content: str = Field(description="The model's answer")
    model: str = Field(description="Model that generated the answer")
    input_tokens: int
    output_tokens: int


# ---------------------------------------------------------------------------
# Auth & Admin
# ---------------------------------------------------------------------------


class ApiKeyResponse(BaseModel):
    """An API key as shown to admins (no raw key, no hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    key_prefix: str
    scopes: list[str] | None
    is_active: bool
    created_at: datetime
    expires_at: datetime | None = None
    last_used_at: datetime | None = None


class ApiKeyCreatedResponse(ApiKeyResponse):
    """Response for POST /admin/keys. raw_key is shown only here."""

    raw_key: str = Field(description="The full API key. Store it now; it cannot be retrieved later.")


class ApiKeyListResponse(BaseModel):
    """Response for GET /admin/keys."""

    keys: list[ApiKeyResponse]
    total: int


class WhoAmIResponse(BaseModel):
    """Response for GET /auth/me."""

    authenticated: bool
    name: str | None = None
    key_prefix: str | None = None
    scopes: list[str] | None = None
