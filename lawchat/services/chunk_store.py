# =============================================================================
# Chunk Store — pgvector Persistence for Document Chunks
# =============================================================================
#
# Writes (document_name, chunk_index, content, embedding) rows and lists
# what has been stored.
#
# INSERT SEMANTICS: partial success, not atomic per document.
# Each row is inserted inside its own SAVEPOINT. A row that fails (wrong
# vector width, constraint violation, dropped connection) is rolled back
# alone, logged, and reported in failed_indices; the remaining rows are
# still inserted. The caller's session commits whatever succeeded.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lawchat.db.models import DocumentChunk

logger = logging.getLogger(__name__)


class ChunkCountMismatchError(RuntimeError):
    """Raised when the embedding backend returns a different number of vectors than chunks."""


@dataclass
class StoreResult:
    """Outcome of storing one document's chunks."""

    stored_ids: list[int] = field(default_factory=list)
    failed_indices: list[int] = field(default_factory=list)


@dataclass
class StoredDocument:
    """Summary of one uploaded document as it exists in the table."""

    document_name: str
    chunk_count: int
    uploaded_at: datetime


class ChunkStore:
    """
    pgvector-backed store bound to a request's AsyncSession.

    The store never commits; transaction control belongs to the session
    owner (get_async_session commits when the request handler returns).
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_chunks(
        self,
        document_name: str,
        contents: Sequence[str],
        embeddings: Sequence[Sequence[float]],
    ) -> StoreResult:
        """
        Insert one row per chunk, in order, each in its own savepoint.

        contents[i] is stored with chunk_index=i and embeddings[i].

        Raises:
            ChunkCountMismatchError: If contents and embeddings differ in length.
        """
        if len(contents) != len(embeddings):
            raise ChunkCountMismatchError(
                f"Got {len(contents)} chunks but {len(embeddings)} embeddings"
            )

        result = StoreResult()

        for index, (content, embedding) in enumerate(zip(contents, embeddings)):
            row = DocumentChunk(
                document_name=document_name,
                chunk_index=index,
                content=content,
                embedding=list(embedding),
            )
            try:
                async with self._session.begin_nested():
                    self._session.add(row)
            except SQLAlchemyError:
                logger.exception(
                    "Failed to insert chunk %d of '%s'", index, document_name,
                )
                result.failed_indices.append(index)
                continue

            result.stored_ids.append(row.id)
            logger.debug("Inserted chunk %d of '%s' (id=%s)", index, document_name, row.id)

        logger.info(
            "Stored %d/%d chunks for '%s' (%d failed)",
            len(result.stored_ids), len(contents), document_name,
            len(result.failed_indices),
        )
        return result

    async def list_documents(self) -> list[StoredDocument]:
        """List stored documents, most recently uploaded first."""
        uploaded_at = func.max(DocumentChunk.created_at).label("uploaded_at")
        stmt = (
            select(
                DocumentChunk.document_name,
                func.count(DocumentChunk.id).label("chunk_count"),
                uploaded_at,
            )
            .group_by(DocumentChunk.document_name)
            .order_by(uploaded_at.desc())
        )
        rows = (await self._session.execute(stmt)).all()

        return [
            StoredDocument(
                document_name=row.document_name,
                chunk_count=row.chunk_count,
                uploaded_at=row.uploaded_at,
            )
            for row in rows
        ]
