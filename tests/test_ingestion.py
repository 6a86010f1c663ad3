# =============================================================================
# Unit Tests — Upload Pipeline and Chunk Store
# =============================================================================
#
# ingest_pdf runs with a fake OCR provider, a patched embed_batch and a
# fake store. ChunkStore runs against a fake session whose savepoints can
# be told to fail, so no PostgreSQL is required.
# =============================================================================

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from lawchat.services.chunk_store import ChunkCountMismatchError, ChunkStore, StoreResult
from lawchat.services.ingestion import EmptyDocumentError, ingest_pdf


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


STATUTE_TEXT = (
    "Lag (2099:1) om exempelverksamhet.\n"
    "1 kap. 1 § Denna lag gäller för tillståndspliktig verksamhet.\n"
    "1 kap. 2 § Med verksamhetsutövare avses den som bedriver verksamheten.\n"
)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeOcr:
    """OcrProvider stand-in returning canned text."""

    text: str = STATUTE_TEXT
    calls: list[tuple[str, bytes]] = field(default_factory=list)

    def extract_text(self, filename: str, payload: bytes) -> str:
        self.calls.append((filename, payload))
        return self.text


@dataclass
class FakeStore:
    """ChunkStore stand-in recording what it was asked to store."""

    failed: list[int] = field(default_factory=list)
    calls: list[tuple] = field(default_factory=list)

    async def add_chunks(self, document_name, contents, embeddings):
        self.calls.append((document_name, list(contents), list(embeddings)))
        stored = [i + 100 for i in range(len(contents)) if i not in self.failed]
        return StoreResult(stored_ids=stored, failed_indices=list(self.failed))


def _fake_embed(texts):
    return [[float(i), float(len(t))] for i, t in enumerate(texts)]


# ---------------------------------------------------------------------------
# ingest_pdf
# ---------------------------------------------------------------------------


class TestIngestPdf:
    """Tests for the OCR → chunk → embed → store pipeline."""

    def test_stores_chunks_with_matching_embeddings(self):
        ocr = FakeOcr()
        store = FakeStore()

        with patch("lawchat.services.ingestion.embed_batch", side_effect=_fake_embed):
            result = _run(ingest_pdf("lag.pdf", b"%PDF", store, ocr=ocr))

        assert ocr.calls == [("lag.pdf", b"%PDF")]
        assert result.document_name == "lag.pdf"
        assert result.chunk_count == 1
        assert result.stored_count == 1
        assert result.failed_chunk_indices == []

        document_name, contents, embeddings = store.calls[0]
        assert document_name == "lag.pdf"
        assert contents[0].startswith("Lag (2099:1)")
        assert embeddings == _fake_embed(contents)

    def test_min_chars_override_changes_chunking(self):
        store = FakeStore()

        with patch("lawchat.services.ingestion.embed_batch", side_effect=_fake_embed):
            result = _run(ingest_pdf("lag.pdf", b"%PDF", store, ocr=FakeOcr(), min_chars=10))

        _, contents, embeddings = store.calls[0]
        assert result.chunk_count == 3
        assert contents[1].startswith("1 kap. 1 §")
        assert contents[2].startswith("1 kap. 2 §")
        assert len(embeddings) == 3

    def test_partial_store_failure_reported(self):
        store = FakeStore(failed=[1])

        with patch("lawchat.services.ingestion.embed_batch", side_effect=_fake_embed):
            result = _run(ingest_pdf("lag.pdf", b"%PDF", store, ocr=FakeOcr(), min_chars=10))

        assert result.chunk_count == 3
        assert result.stored_count == 2
        assert result.failed_chunk_indices == [1]

    @pytest.mark.parametrize("text", ["", "   \n\r\n  "])
    def test_blank_ocr_raises_empty_document(self, text):
        store = FakeStore()
        embed = MagicMock()

        with patch("lawchat.services.ingestion.embed_batch", embed):
            with pytest.raises(EmptyDocumentError):
                _run(ingest_pdf("blank.pdf", b"%PDF", store, ocr=FakeOcr(text=text)))

        embed.assert_not_called()
        assert store.calls == []

    def test_embedding_failure_stores_nothing(self):
        store = FakeStore()

        with patch(
            "lawchat.services.ingestion.embed_batch",
            side_effect=RuntimeError("embedding API down"),
        ):
            with pytest.raises(RuntimeError):
                _run(ingest_pdf("lag.pdf", b"%PDF", store, ocr=FakeOcr()))

    def test_short_embedding_batch_is_not_a_configuration_error(self):
        store = ChunkStore(FakeSession())

        with patch("lawchat.services.ingestion.embed_batch", return_value=[[0.1]]):
            with pytest.raises(ChunkCountMismatchError) as exc_info:
                _run(ingest_pdf("lag.pdf", b"%PDF", store, ocr=FakeOcr(), min_chars=10))

        assert not isinstance(exc_info.value, ValueError)
        assert "3 chunks but 1 embeddings" in str(exc_info.value)

        assert store.calls == []

    def test_uses_configured_provider_by_default(self):
        ocr = FakeOcr()

        with (
            patch("lawchat.services.ingestion.get_ocr_provider", return_value=ocr),
            patch("lawchat.services.ingestion.embed_batch", side_effect=_fake_embed),
        ):
            _run(ingest_pdf("lag.pdf", b"%PDF", FakeStore()))

        assert len(ocr.calls) == 1

    def test_empty_document_error_is_value_error(self):
        assert issubclass(EmptyDocumentError, ValueError)


# ---------------------------------------------------------------------------
# ChunkStore
# ---------------------------------------------------------------------------


class FakeSavepoint:
    """Async context manager standing in for session.begin_nested()."""

    def __init__(self, session: FakeSession, fail: bool):
        self._session = session
        self._fail = fail

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            return False
        row = self._session.added[-1]
        if self._fail:
            self._session.added.pop()
            raise IntegrityError("INSERT INTO document_chunks", {}, Exception("boom"))
        self._session.next_id += 1
        row.id = self._session.next_id
        return False


class FakeSession:
    """AsyncSession stand-in that assigns ids on savepoint release."""

    def __init__(self, fail_indices=()):
        self.fail_indices = set(fail_indices)
        self.added = []
        self.next_id = 0
        self._savepoints = 0

    def begin_nested(self):
        fail = self._savepoints in self.fail_indices
        self._savepoints += 1
        return FakeSavepoint(self, fail)

    def add(self, row):
        self.added.append(row)


class TestChunkStore:
    """Tests for per-row savepoint inserts and document listing."""

    def test_rows_keep_input_order_and_index(self):
        session = FakeSession()
        store = ChunkStore(session)

        result = _run(store.add_chunks("lag.pdf", ["a", "b", "c"], [[0.1], [0.2], [0.3]]))

        assert result.stored_ids == [1, 2, 3]
        assert result.failed_indices == []
        assert [r.chunk_index for r in session.added] == [0, 1, 2]
        assert [r.content for r in session.added] == ["a", "b", "c"]
        assert [r.embedding for r in session.added] == [[0.1], [0.2], [0.3]]
        assert {r.document_name for r in session.added} == {"lag.pdf"}

    def test_failed_row_is_skipped_and_reported(self):
        session = FakeSession(fail_indices=[1])
        store = ChunkStore(session)

        result = _run(store.add_chunks("lag.pdf", ["a", "b", "c"], [[0.1], [0.2], [0.3]]))

        assert result.failed_indices == [1]
        assert len(result.stored_ids) == 2
        assert [r.chunk_index for r in session.added] == [0, 2]

    def test_every_row_failing_still_returns(self):
        session = FakeSession(fail_indices=[0, 1])
        result = _run(ChunkStore(session).add_chunks("lag.pdf", ["a", "b"], [[0.1], [0.2]]))

        assert result.stored_ids == []
        assert result.failed_indices == [0, 1]

    def test_length_mismatch_raises(self):
        with pytest.raises(ChunkCountMismatchError, match="2 chunks but 1 embeddings"):
            _run(ChunkStore(FakeSession()).add_chunks("lag.pdf", ["a", "b"], [[0.1]]))

    def test_list_documents(self):
        uploaded = datetime(2026, 1, 2, tzinfo=UTC)
        rows = [SimpleNamespace(document_name="lag.pdf", chunk_count=4, uploaded_at=uploaded)]

        mock_result = MagicMock()
        mock_result.all.return_value = rows
        session = AsyncMock()
        session.execute.return_value = mock_result

        documents = _run(ChunkStore(session).list_documents())

        assert len(documents) == 1
        assert documents[0].document_name == "lag.pdf"
        assert documents[0].chunk_count == 4
        assert documents[0].uploaded_at == uploaded
        session.execute.assert_awaited_once()
