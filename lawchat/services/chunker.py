# =============================================================================
# Legal Text Chunker — Citation-Aware Splitting
# =============================================================================
#
# Splits OCR'd Swedish statute text into chunks that start at a citation
# ("1 kap. 2 §") and are merged up to a soft minimum size before embedding.
#
# PIPELINE:
#   normalize_text   → collapse line breaks and whitespace runs
#   split_sections   → lookahead partition before every citation marker
#   assemble_chunks  → greedy merge of short sections up to min_chars
#
# The assembler only merges, it never splits: a single section longer than
# min_chars is emitted whole. There is no hard maximum chunk size.
#
# Pipeline position: Step 2 of upload (OCR → chunk → embed → store).
# =============================================================================

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Heuristic Constants
# ---------------------------------------------------------------------------
# Tuned for Swedish legislation. Both can be overridden per call; the
# threshold is also exposed as settings.chunk_min_chars.
#
# CITATION_MARKER matches the empty position before "<digits> kap. <digits> §".
# Matching is case-insensitive but diacritic-sensitive. Digits are ASCII
# only ([0-9], not \d). The lookbehind keeps "12 kap." from also matching
# at "2 kap.".
# ---------------------------------------------------------------------------

MIN_CHUNK_CHARS = 800

CITATION_MARKER = re.compile(r"(?<![0-9])(?=[0-9]+\s*kap\.\s*[0-9]+\s*§)", re.IGNORECASE)

_LINE_BREAKS = re.compile(r"\r?\n+")
_WHITESPACE_RUN = re.compile(r"\s{2,}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_text(text: str) -> str:
    """Collapse line-break runs to one newline, then whitespace runs to a space."""
    text = _LINE_BREAKS.sub("\n", text)
    return _WHITESPACE_RUN.sub(" ", text)


def split_sections(
    text: str,
    marker: re.Pattern[str] = CITATION_MARKER,
) -> list[str]:
    """
    Split normalized text before every citation marker.

    The first section holds any preamble before the first marker. Each
    following section starts with the marker it introduces. Sections are
    trimmed and empty ones dropped.
    """
    return [part.strip() for part in marker.split(text) if part.strip()]


def assemble_chunks(
    sections: Iterable[str],
    min_chars: int = MIN_CHUNK_CHARS,
) -> list[str]:
    """
    Greedily merge sections into chunks of roughly min_chars characters.

    A section is appended to the running buffer while the combined length
    stays strictly below min_chars. Otherwise the buffer is emitted and a
    new one is started with the bare section. Each merged section is
    followed by a newline, so the section that opens a flushed buffer is
    joined to the next one without a separator.
    """
    chunks: list[str] = []
    buffer = ""

    for section in sections:
        section = section.strip()
        if not section:
            continue

        if len(buffer) + len(section) < min_chars:
            buffer += section + "\n"
        else:
            if buffer.strip():
                chunks.append(buffer.strip())
            buffer = section

    if buffer.strip():
        chunks.append(buffer.strip())
    return chunks


def chunk_legal_text(
    text: str,
    min_chars: int = MIN_CHUNK_CHARS,
    marker: re.Pattern[str] = CITATION_MARKER,
) -> list[str]:
    """
    Split document text into citation-aligned chunks.

    Args:
        text: Raw text as returned by OCR.
        min_chars: Soft minimum chunk length (default 800).
        marker: Zero-width pattern marking where a new section starts.

    Returns:
        Chunks in document order. Empty when the text is blank; callers
        must treat that as a valid result.
    """
    sections = split_sections(normalize_text(text), marker=marker)
    chunks = assemble_chunks(sections, min_chars=min_chars)

    logger.debug(
        "Chunked %d chars into %d sections and %d chunks (min_chars=%d)",
        len(text), len(sections), len(chunks), min_chars,
    )
    return chunks
