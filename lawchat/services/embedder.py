# =============================================================================
# Embedding Service — Batch Vector Generation
# =============================================================================
#
# Generates chunk embeddings with any OpenAI-compatible embedding API
# (OpenAI by default; set EMBEDDING_BASE_URL for other providers).
#
# The client is synchronous. The upload route calls embed_batch() through
# asyncio.to_thread() so the event loop is never blocked.
#
# TOKEN LIMITS:
# - Each text: max 8,191 tokens for text-embedding-3-small
# - Chunks are ~800 characters, so 100 texts per call stay well below the
#   per-request limit
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import OpenAI

from lawchat.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Embedding Client — Lazy Singleton
# ---------------------------------------------------------------------------
# API key resolution order:
#   1. OPENAI_API_KEY
#   2. LLM_API_KEY (one key shared by chat and embeddings)
# ---------------------------------------------------------------------------

_client: OpenAI | None = None


def _get_client() -> OpenAI:
    """Lazily initialize and cache the embedding client."""
    global _client
    if _client is None:
        resolved_key = settings.openai_api_key or settings.llm_api_key
        if not resolved_key:
            raise ValueError(
                "No API key configured for embeddings. "
                "Set OPENAI_API_KEY or LLM_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key}
        if settings.embedding_base_url:
            client_kwargs["base_url"] = settings.embedding_base_url

        _client = OpenAI(**client_kwargs)

        logger.info(
            "Initialized embedding client (model=%s, base_url=%s)",
            settings.embedding_model,
            settings.embedding_base_url or "https://api.openai.com/v1",
        )
    return _client


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def embed_batch(
    texts: Sequence[str],
    batch_size: int | None = None,
) -> list[list[float]]:
    """
    Generate embeddings for a list of texts.

    Texts are sent in sub-batches of batch_size. The result is in the same
    order as the input: result[i] is the embedding of texts[i].

    Raises:
        ValueError: If no API key is configured.
        openai.APIError: If the embedding API call fails.

    Pipeline position: Step 3 of upload (OCR → chunk → embed → store).
    """
    if not texts:
        return []

    client = _get_client()
    _batch_size = batch_size or settings.embedding_batch_size

    all_embeddings: list[list[float]] = [[] for _ in texts]

    for i in range(0, len(texts), _batch_size):
        batch = list(texts[i : i + _batch_size])
        logger.info(
            "Embedding texts %d-%d of %d (model=%s)",
            i + 1,
            min(i + _batch_size, len(texts)),
            len(texts),
            settings.embedding_model,
        )

        create_kwargs: dict = {
            "model": settings.embedding_model,
            "input": batch,
        }
        if settings.embedding_dimensions:
            create_kwargs["dimensions"] = settings.embedding_dimensions

        response = client.embeddings.create(**create_kwargs)

        # Items carry their position within the batch; place them by index.
        for item in response.data:
            all_embeddings[i + item.index] = item.embedding

    logger.info(
        "Generated %d embeddings (model=%s, dimensions=%d)",
        len(texts),
        settings.embedding_model,
        settings.embedding_dimensions,
    )
    return all_embeddings
