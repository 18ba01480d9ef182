"""Deck catalog: the deck packages available under a root directory."""

from __future__ import annotations

import logging
from pathlib import Path

from backend.config import settings
from backend.deck.package import DeckPackage
from backend.errors import DeckNotFound

logger = logging.getLogger(__name__)


def list_decks(root: Path) -> list[Path]:
    """List the deck package directories directly under ``root``.

    Hidden entries are skipped. Nothing inside the packages is read.
    """
    root = Path(root)
    try:
        entries = list(root.iterdir())
    except FileNotFoundError:
        logger.info("Deck root %s does not exist", root)
        return []
    except NotADirectoryError:
        logger.warning("Deck root %s is not a directory", root)
        return []
    decks = sorted(
        (p for p in entries if not p.name.startswith(".") and p.is_dir()),
        key=lambda p: p.name,
    )
    logger.debug("Found %d decks in %s", len(decks), root)
    return decks


class DeckCatalog:
    """Opens and creates deck packages by name under one root directory."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = Path(root) if root is not None else settings.decks_root

    def list(self) -> list[Path]:
        """List deck package paths without loading any of them."""
        return list_decks(self.root)

    def names(self) -> list[str]:
        return [p.name for p in self.list()]

    def path_for(self, name: str) -> Path:
        """Return the package path for a deck name."""
        if not name or name.startswith(".") or Path(name).name != name:
            raise DeckNotFound(f"Invalid deck name: {name!r}")
        return self.root / name

    def open(self, name: str) -> DeckPackage:
        """Open and load the named deck."""
        path = self.path_for(name)
        if not path.is_dir():
            raise DeckNotFound(f"No deck named {name!r} in {self.root}")
        return DeckPackage.open(path)

    def create(self, name: str) -> DeckPackage:
        """Create a new, empty deck package named ``name``."""
        package = DeckPackage.create_empty()
        package.attach_to_root(self.path_for(name))
        return package
