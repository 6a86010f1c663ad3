# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# SCHEMA OVERVIEW:
#
# ┌──────────────────────────────┐   ┌──────────────────────────┐
# │  document_chunks             │   │  api_keys                │
# ├──────────────────────────────┤   ├──────────────────────────┤
# │ id (PK)                      │   │ id (PK)                  │
# │ document_name (text)         │   │ name                     │
# │ chunk_index (int, >= 0)      │   │ key_prefix               │
# │ content (text)               │   │ key_hash (unique)        │
# │ embedding (vector(1536))     │   │ scopes (jsonb)           │
# │ created_at                   │   │ is_active                │
# └──────────────────────────────┘   │ expires_at               │
#                                    │ last_used_at             │
#                                    │ created_at               │
#                                    └──────────────────────────┘
#
# Chunk rows are written once per upload and never updated. A document is
# identified only by its uploaded filename; re-uploading the same file adds
# a second set of rows.
# =============================================================================

from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from lawchat.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class for all ORM models."""

    pass


class DocumentChunk(Base):
    """
    One chunk of an uploaded legal document with its embedding.

    chunk_index is the 0-based position of the chunk in the document as
    produced by the chunker; reading rows ordered by it rebuilds the
    document's section order.
    """

    __tablename__ = "document_chunks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Original filename as uploaded (e.g., "miljobalken.pdf")
    document_name: Mapped[str] = mapped_column(String(500), nullable=False)

    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # vector(embedding_dimensions); pgvector rejects rows of another width
    embedding: Mapped[list[float]] = mapped_column(
        Vector(settings.embedding_dimensions),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("chunk_index >= 0", name="ck_document_chunks_chunk_index"),
        Index("ix_document_chunks_document_name", "document_name"),
        # HNSW index for cosine similarity search on embeddings
        Index(
            "ix_document_chunks_embedding_hnsw",
            "embedding",
            postgresql_using="hnsw",
            postgresql_with={"m": 16, "ef_construction": 64},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<DocumentChunk(id={self.id}, document='{self.document_name}', "
            f"index={self.chunk_index})>"
        )


class ApiKey(Base):
    """
    A bearer API key. Only the SHA-256 hash is stored; the raw key is shown
    once at creation.

    scopes: list of allowed scopes ("chat", "upload", "admin"). Null or an
    empty list means full access.
    """

    __tablename__ = "api_keys"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # First 8 characters of the raw key, for identification in logs/admin
    key_prefix: Mapped[str] = mapped_column(String(8), nullable=False)

    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    scopes: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, name='{self.name}', prefix='{self.key_prefix}')>"
