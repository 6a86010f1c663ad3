# =============================================================================
# FastAPI Application
# =============================================================================
#
# Run locally:
#   uvicorn lawchat.main:app --reload
#
# On startup the pgvector extension and tables are created when
# DB_AUTO_CREATE is true. CORS is opened to settings.cors_origins so the
# browser frontend can call the API.
# =============================================================================

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lawchat.api import admin, chat, upload
from lawchat.config import settings
from lawchat.db.engine import dispose_engine, init_db
from lawchat.models.responses import HealthResponse

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.db_auto_create:
        await init_db()
    logger.info(
        "%s %s started (llm=%s/%s, ocr=%s, auth=%s)",
        settings.app_name, settings.app_version,
        settings.llm_provider, settings.llm_model,
        settings.ocr_provider, "on" if settings.auth_enabled else "off",
    )
    yield
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload.router)
app.include_router(chat.router)
app.include_router(admin.auth_router)
app.include_router(admin.router)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse(version=settings.app_version, service=settings.app_name)
