"""FastAPI application entry point and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from backend.api.deck_router import router as deck_router
from backend.config import settings
from backend.deck.catalog import DeckCatalog
from backend.dependencies import get_catalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Make sure the decks root exists on startup."""
    settings.decks_root.mkdir(parents=True, exist_ok=True)
    logger.info("Serving decks from %s", settings.decks_root)
    yield


app = FastAPI(
    title=settings.app_name,
    description="Spaced repetition flashcards stored as deck packages",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(deck_router)


@app.get("/health")
def health_check(catalog: DeckCatalog = Depends(get_catalog)) -> dict[str, str]:
    """Check the decks root is reachable and return status."""
    status = "ok" if catalog.root.is_dir() else "degraded"
    return {"status": status}
