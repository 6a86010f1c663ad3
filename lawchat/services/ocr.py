# =============================================================================
# OCR Service — Pluggable Text Extraction for Uploaded PDFs
# =============================================================================
#
# Turns a PDF payload into one raw text string for the chunker.
#
# ARCHITECTURE:
#   OcrProvider (Protocol)
#   ├── MistralOcrProvider  — hosted Mistral OCR, pages joined by blank lines
#   ├── DoclingOcrProvider  — local Docling pipeline with OCR enabled
#   └── get_ocr_provider()  — singleton factory, reads settings.ocr_provider
#
# Both providers are synchronous. Callers on the event loop wrap
# extract_text() in asyncio.to_thread().
#
# SDK imports happen inside the constructors so the unused backend never
# has to be installed (Docling lives in the "docling" extra).
# =============================================================================

from __future__ import annotations

import base64
import logging
from io import BytesIO
from typing import Protocol

from lawchat.config import settings

logger = logging.getLogger(__name__)


class OcrProvider(Protocol):
    """Protocol for anything that can turn a PDF into plain text."""

    def extract_text(self, filename: str, payload: bytes) -> str:
        """
        Extract the document text.

        Raises:
            RuntimeError: If the OCR backend fails to process the document.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: Mistral OCR (hosted)
# ---------------------------------------------------------------------------


class MistralOcrProvider:
    """
    Hosted OCR through the Mistral SDK.

    The PDF is sent inline as a base64 data URL, so nothing has to be
    uploaded to a file store first. The OCR API returns markdown per page.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        from mistralai import Mistral

        resolved_key = api_key or settings.mistral_api_key
        if not resolved_key:
            raise ValueError(
                "No Mistral API key configured for OCR. "
                "Set MISTRAL_API_KEY in .env"
            )

        self._client = Mistral(api_key=resolved_key)
        self._model = model or settings.ocr_model

        logger.info("Initialized MistralOcrProvider (model=%s)", self._model)

    def extract_text(self, filename: str, payload: bytes) -> str:
        """OCR the PDF and join page markdown with blank lines."""
        pdf_base64 = base64.b64encode(payload).decode("ascii")

        try:
            response = self._client.ocr.process(
                model=self._model,
                document={
                    "type": "document_url",
                    "document_url": f"data:application/pdf;base64,{pdf_base64}",
                },
            )
        except Exception as exc:
            raise RuntimeError(
                f"Mistral OCR failed for '{filename}': {exc}"
            ) from exc

        pages = response.pages or []
        logger.info("Mistral OCR returned %d pages for '%s'", len(pages), filename)
        return "\n\n".join(page.markdown for page in pages)


# ---------------------------------------------------------------------------
# Implementation 2: Docling (local)
# ---------------------------------------------------------------------------


class DoclingOcrProvider:
    """
    Local extraction with Docling, OCR enabled for scanned pages.

    The converter loads layout and OCR models on construction (a few
    seconds), so one instance is reused for every upload.
    """

    def __init__(self) -> None:
        from docling.datamodel.base_models import InputFormat
        from docling.datamodel.pipeline_options import PdfPipelineOptions
        from docling.document_converter import DocumentConverter, PdfFormatOption

        logger.info(
            "Initializing Docling DocumentConverter "
            "(first use, may take a few seconds)..."
        )

        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_ocr = True
        pipeline_options.do_table_structure = True

        self._converter = DocumentConverter(
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            }
        )
        logger.info("Docling DocumentConverter initialized")

    def extract_text(self, filename: str, payload: bytes) -> str:
        """Convert the PDF and export the whole document as markdown."""
        from docling.datamodel.base_models import DocumentStream

        stream = DocumentStream(name=filename, stream=BytesIO(payload))
        try:
            result = self._converter.convert(stream)
        except Exception as exc:
            raise RuntimeError(
                f"Docling failed to parse '{filename}': {exc}"
            ) from exc

        return result.document.export_to_markdown()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

_provider: MistralOcrProvider | DoclingOcrProvider | None = None


def get_ocr_provider() -> MistralOcrProvider | DoclingOcrProvider:
    """
    Return the configured OCR provider, creating it on first use.

    Reads `ocr_provider` from settings:
    - "mistral" → MistralOcrProvider
    - "docling" → DoclingOcrProvider

    Raises:
        ValueError: Unknown provider name or missing API key.
    """
    global _provider
    if _provider is None:
        if settings.ocr_provider == "mistral":
            _provider = MistralOcrProvider()
        elif settings.ocr_provider == "docling":
            _provider = DoclingOcrProvider()
        else:
            raise ValueError(
                f"Unknown OCR provider '{settings.ocr_provider}'. "
                "Supported: 'mistral', 'docling'"
            )
    return _provider
