# =============================================================================
# Services Package — Business Logic
# =============================================================================
#   - chunker.py: Citation-aware legal text chunking (the core heuristic)
#   - ocr.py: PDF text extraction (Mistral OCR or local Docling)
#   - embedder.py: OpenAI embedding generation (batched)
#   - chunk_store.py: pgvector persistence with per-row partial success
#   - ingestion.py: Upload pipeline (OCR → chunk → embed → store)
#   - prompt.py: XML system prompt template loading and rendering
#   - llm.py: Chat model providers (OpenAI-compatible, Anthropic)
#   - auth.py: API key generation and hashing
# =============================================================================
