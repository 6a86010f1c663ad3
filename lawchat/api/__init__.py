# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
# Each module defines a FastAPI APIRouter for a specific feature:
#   - upload.py: PDF upload pipeline and stored-document listing
#   - chat.py: Streaming chat with the legal assistant
#   - admin.py: API key management and /auth/me
#   - deps.py: Authentication dependencies
# =============================================================================
