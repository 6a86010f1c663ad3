# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# Shapes of data coming INTO the API. FastAPI validates request bodies
# against them (422 on mismatch) and publishes them in the OpenAPI docs.
#
# Uploads are multipart form data and have no body model; see api/upload.py.
# =============================================================================

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessagePart(BaseModel):
    """One part of a chat message. Only text parts are sent to the model."""

    type: str = Field(default="text", examples=["text"])
    text: str = ""


class ChatMessage(BaseModel):
    """
    A single conversation turn.

    Clients may send either a plain `content` string or a list of `parts`
    (the UI message format used by streaming chat frontends). Text parts are
    joined with newlines.
    """

    role: Literal["user", "assistant"]
    content: str | None = None
    parts: list[MessagePart] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_text(self) -> "ChatMessage":
        if not self.text:
            raise ValueError("message must have non-empty content or text parts")
        return self

    @property
    def text(self) -> str:
        if self.content:
            return self.content
        return "\n".join(p.text for p in self.parts if p.type == "text" and p.text)

    def to_model_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.text}


class ChatRequest(BaseModel):
    """
    Request body for POST /chat.

    Example:
        {
            "messages": [
                {"role": "user", "content": "Vad säger 2 kap. 3 § miljöbalken?"}
            ]
        }
    """

    messages: list[ChatMessage] = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Conversation so far, oldest first. The last turn is usually the user's.",
    )
    stream: bool = Field(
        default=True,
        description="Stream the answer as Server-Sent Events. False returns one JSON body.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "messages": [
                        {"role": "user", "content": "Vad säger 2 kap. 3 § miljöbalken?"},
                    ],
                    "stream": True,
                },
            ]
        }
    )


# ---------------------------------------------------------------------------
# Admin: API Key Management
# ---------------------------------------------------------------------------


class CreateApiKeyRequest(BaseModel):
    """Request body for POST /admin/keys."""

    name: str = Field(..., min_length=1, max_length=200)
    scopes: list[Literal["chat", "upload", "admin"]] | None = Field(
        default=None,
        description="Allowed scopes. Null or empty grants full access.",
    )
    expires_at: datetime | None = None


class UpdateApiKeyRequest(BaseModel):
    """Request body for PATCH /admin/keys/{key_id}. Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    scopes: list[Literal["chat", "upload", "admin"]] | None = None
    is_active: bool | None = None
    expires_at: datetime | None = None
