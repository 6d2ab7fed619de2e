"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from peninsula import __version__
from peninsula.api import health
from peninsula.api.v1 import router as v1_router
from peninsula.core.config import settings
from peninsula.core.database import SessionLocal, check_db_connected
from peninsula.core.errors import register_exception_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Refuse to start when the database is unreachable."""
    db = SessionLocal()
    try:
        connected = check_db_connected(db)
    finally:
        db.close()
    if not connected:
        raise RuntimeError("Database is unreachable; aborting startup")
    logger.info("Peninsula API ready", extra={"environment": settings.APP_ENV})
    yield


app = FastAPI(
    title="Peninsula API",
    version=__version__,
    docs_url="/docs" if settings.APP_ENV == "dev" else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.CORS_ORIGIN == "*" else [settings.CORS_ORIGIN],
    allow_credentials=settings.CORS_ORIGIN != "*",
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
