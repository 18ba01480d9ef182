"""FastAPI dependencies for catalog and scheduler access."""

from backend.config import settings
from backend.deck.catalog import DeckCatalog
from backend.srs.sm2 import SM2Scheduler


def get_catalog() -> DeckCatalog:
    """Return the catalog over the configured decks root."""
    return DeckCatalog(settings.decks_root)


def get_scheduler() -> SM2Scheduler:
    return SM2Scheduler(min_easiness_factor=settings.min_easiness_factor)
