# =============================================================================
# Legal Document Chat
# =============================================================================
# A chat service over Swedish legal documents. PDFs are OCR'd, split at
# statute citations ("3 kap. 2 §"), embedded, and stored in PostgreSQL with
# pgvector. The chat endpoint streams answers from a hosted language model
# steered by a versioned system prompt template.
#
# Package structure:
#   lawchat/
#   ├── api/          → FastAPI route handlers (upload, chat, admin)
#   ├── db/           → Async engine, session, and ORM models
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── prompts/      → Packaged system prompt template (XML)
#   └── services/     → Business logic (OCR, chunking, embedding, storage,
#                        prompt loading, LLM providers, API keys)
# =============================================================================

__version__ = "0.1.0"
