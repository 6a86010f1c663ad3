# =============================================================================
# Upload Pipeline — OCR → Chunk → Embed → Store
# =============================================================================
#
# Runs inside the POST /upload request. Steps are sequential:
#   1. OCR the PDF into raw text        (OcrProvider, off the event loop)
#   2. Split into citation-aware chunks (chunk_legal_text)
#   3. Embed all chunks                 (embed_batch, off the event loop)
#   4. Insert one row per chunk         (ChunkStore, per-row savepoints)
#
# Failures in steps 1-3 abort the upload and nothing is stored. Failures in
# step 4 are per row: the upload still succeeds with the rows that made it.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from lawchat.config import settings
from lawchat.services.chunk_store import ChunkStore
from lawchat.services.chunker import chunk_legal_text
from lawchat.services.embedder import embed_batch
from lawchat.services.ocr import OcrProvider, get_ocr_provider

logger = logging.getLogger(__name__)


class EmptyDocumentError(ValueError):
    """OCR produced no text that could be chunked."""


@dataclass
class IngestionResult:
    """Summary of one processed upload."""

    document_name: str
    chunk_count: int
    stored_count: int
    failed_chunk_indices: list[int] = field(default_factory=list)


async def ingest_pdf(
    filename: str,
    payload: bytes,
    store: ChunkStore,
    ocr: OcrProvider | None = None,
    min_chars: int | None = None,
) -> IngestionResult:
    """
    Process one uploaded PDF end to end.

    Args:
        filename: Uploaded filename, stored as document_name.
        payload: Raw PDF bytes.
        store: Chunk store bound to the request session.
        ocr: OCR provider override (default: configured provider).
        min_chars: Chunk size threshold override (default: settings).

    Raises:
        EmptyDocumentError: OCR returned no readable text.
        ValueError: A provider is not configured (missing API key).
        RuntimeError: The OCR backend failed.
        ChunkCountMismatchError: The embedding backend returned a different
            number of vectors than chunks.
        openai.APIError: The embedding API failed.
    """
    ocr = ocr or get_ocr_provider()
    _min_chars = min_chars or settings.chunk_min_chars

    # --- Step 1: OCR ---
    logger.info("[%s] Step 1/4: Extracting text (%d bytes)...", filename, len(payload))
    raw_text = await asyncio.to_thread(ocr.extract_text, filename, payload)
    if not raw_text.strip():
        raise EmptyDocumentError("PDF contains no readable text")

    # --- Step 2: Chunk ---
    chunks = chunk_legal_text(raw_text, min_chars=_min_chars)
    logger.info(
        "[%s] Step 2/4: %d chars split into %d chunks (min_chars=%d)",
        filename, len(raw_text), len(chunks), _min_chars,
    )
    if not chunks:
        raise EmptyDocumentError("PDF contains no readable text")

    # --- Step 3: Embed ---
    logger.info("[%s] Step 3/4: Embedding %d chunks...", filename, len(chunks))
    embeddings = await asyncio.to_thread(embed_batch, chunks)

    # --- Step 4: Store ---
    logger.info("[%s] Step 4/4: Storing chunks...", filename)
    stored = await store.add_chunks(filename, chunks, embeddings)

    return IngestionResult(
        document_name=filename,
        chunk_count=len(chunks),
        stored_count=len(stored.stored_ids),
        failed_chunk_indices=stored.failed_indices,
    )
