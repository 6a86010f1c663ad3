# =============================================================================
# Upload API — PDF Ingestion and Stored Documents
# =============================================================================
#
# ENDPOINTS:
#   POST /upload     — multipart PDF upload; OCR, chunk, embed and store
#   GET  /documents  — list stored documents with their chunk counts
#
# The upload runs inside the request and answers once every chunk has been
# attempted. Individual chunk inserts may fail without failing the upload;
# their indices are returned in failed_chunk_indices.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from lawchat.api.deps import require_scope
from lawchat.config import settings
from lawchat.db.engine import get_async_session
from lawchat.models.responses import DocumentListResponse, DocumentSummary, UploadResponse
from lawchat.services.chunk_store import ChunkStore
from lawchat.services.ingestion import EmptyDocumentError, ingest_pdf

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])


# ---------------------------------------------------------------------------
# POST /upload — Upload a legal document
# ---------------------------------------------------------------------------


@router.post(
    "/upload",
    response_model=UploadResponse,
    dependencies=[Depends(require_scope("upload"))],
    summary="Upload a PDF for OCR, chunking and embedding",
    description=(
        "Upload a PDF statute or legal text. The document is OCR'd, split "
        "at chapter/section citations, embedded and stored. Responds when "
        "processing is done."
    ),
)
async def upload_document(
    file: UploadFile = File(..., description="PDF file to ingest"),
    session: AsyncSession = Depends(get_async_session),
) -> UploadResponse:
    """Run the upload pipeline for one PDF."""
    # --- Validate file ---
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    if not file.filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=400,
            detail="Only PDF files are accepted. Please upload a .pdf file.",
        )

    payload = await file.read()
    if not payload:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    if len(payload) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"File is {len(payload)} bytes; "
                f"the limit is {settings.max_upload_bytes} bytes."
            ),
        )

    logger.info("Upload received: %s (%d bytes)", file.filename, len(payload))

    # --- Run pipeline ---
    try:
        result = await ingest_pdf(file.filename, payload, ChunkStore(session))
    except EmptyDocumentError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"Service configuration error: {e}",
        ) from e
    except Exception as e:
        logger.exception("Upload pipeline failed for %s: %s", file.filename, e)
        raise HTTPException(
            status_code=502,
            detail=f"Document processing failed: {e}",
        ) from e

    return UploadResponse(
        document_name=result.document_name,
        chunk_count=result.chunk_count,
        stored_count=result.stored_count,
        failed_chunk_indices=result.failed_chunk_indices,
        message=f"Uploaded {result.document_name}: {result.stored_count} chunks stored.",
    )


# ---------------------------------------------------------------------------
# GET /documents — List stored documents
# ---------------------------------------------------------------------------


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    dependencies=[Depends(require_scope("upload"))],
    summary="List uploaded documents",
)
async def list_documents(
    session: AsyncSession = Depends(get_async_session),
) -> DocumentListResponse:
    """List every stored document, most recent upload first."""
    documents = await ChunkStore(session).list_documents()
    return DocumentListResponse(
        documents=[
            DocumentSummary(
                document_name=doc.document_name,
                chunk_count=doc.chunk_count,
                uploaded_at=doc.uploaded_at,
            )
            for doc in documents
        ],
        total=len(documents),
    )
