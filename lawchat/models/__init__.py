# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the API, separate from the ORM models in
# lawchat/db/models.py so embeddings and key hashes never reach clients.
# =============================================================================
