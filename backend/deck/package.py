"""Deck package persistence.

A deck lives in a directory bundle::

    <root>/
      Contents/
        Info.json        # deck id + serialized card list
        <asset files>    # referenced by ref://<filename> face tokens

Every mutation is flushed to disk before the mutating call returns. There is
no separate save step and no undo. A package has a single writer; callers
must not mutate the same package from several threads at once.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import TypeVar

from backend.config import epoch_now, settings
from backend.deck.faces import FRONT_MARKER, asset_dir, cards_from_folder, is_asset_name
from backend.deck.metadata import DeckInfo, read_metadata
from backend.errors import CardNotFound, CorruptMetadata, WriteFailure
from backend.models.card import Card
from backend.models.faces import make_ref, ref_name
from backend.srs.sm2 import SM2Scheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")

# An asset as supplied by a capture collaborator: raw bytes plus extension
Asset = tuple[bytes, str]


class DeckPackage:
    """A deck's in-memory card list kept in sync with its package directory."""

    def __init__(self, root: Path | None = None, deck_id: str | None = None) -> None:
        self.root = Path(root) if root is not None else None
        self.deck_id = deck_id
        self.legacy = False
        self._cards: list[Card] = []
        self._loading = False

    # --- Lifecycle ---

    @classmethod
    def create_empty(cls) -> DeckPackage:
        """Create a new, unattached package with no cards."""
        return cls(deck_id=str(uuid.uuid4()))

    @classmethod
    def open(cls, root: Path) -> DeckPackage:
        """Open an existing package directory and load its cards."""
        package = cls(root)
        package.load()
        return package

    def attach_to_root(self, root: Path) -> None:
        """Bind this package to a directory, writing its first metadata record.

        Raises:
            FileExistsError: If ``root`` already holds a deck package.
            WriteFailure: If the package cannot be written.
        """
        root = Path(root)
        metadata_path = root / settings.contents_dirname / settings.metadata_filename
        if metadata_path.exists() or self._has_legacy_fronts(root):
            raise FileExistsError(f"A deck package already exists at {root}")
        if self.deck_id is None:
            self.deck_id = str(uuid.uuid4())

        try:
            (root / settings.contents_dirname).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteFailure(f"Cannot create package at {root}: {exc}") from exc
        self._write_metadata(metadata_path, self._cards)
        self.root = root
        logger.info("Created deck package %s (%d cards)", root, len(self._cards))

    def load(self) -> None:
        """Read the card list from disk.

        A missing or corrupt metadata file leaves the deck empty instead of
        failing. A package with no metadata but ``*.front.*`` assets is read
        as a legacy deck of paired image files.
        """
        root = self._require_root()
        self._loading = True
        try:
            cards: list[Card] = []
            try:
                info = read_metadata(self.metadata_path)
            except FileNotFoundError:
                cards = self._load_legacy()
            except CorruptMetadata:
                logger.warning("Corrupt metadata in %s, opening as empty deck", root, exc_info=True)
            else:
                self.deck_id = info.id
                cards = info.to_cards()
            if self.deck_id is None:
                self.deck_id = str(uuid.uuid4())
            self._cards = cards
        finally:
            self._loading = False
        logger.info("Loaded %d cards from %s", len(self._cards), root)

    @staticmethod
    def _has_legacy_fronts(root: Path) -> bool:
        try:
            return any(FRONT_MARKER in p.name for p in asset_dir(root).iterdir())
        except OSError:
            return False

    def _load_legacy(self) -> list[Card]:
        contents = self.asset_dir
        try:
            has_fronts = any(FRONT_MARKER in p.name for p in contents.iterdir())
        except OSError:
            logger.warning("No metadata or asset area in %s, opening as empty deck", self.root)
            return []
        if not has_fronts:
            logger.warning("No metadata in %s, opening as empty deck", self.root)
            return []
        self.legacy = True
        return cards_from_folder(contents, now=epoch_now())

    # --- Paths ---

    def _require_root(self) -> Path:
        if self.root is None:
            raise WriteFailure("Deck package is not attached to a directory")
        return self.root

    @property
    def asset_dir(self) -> Path:
        return asset_dir(self._require_root())

    @property
    def metadata_path(self) -> Path:
        return self.asset_dir / settings.metadata_filename

    @property
    def name(self) -> str:
        return self.root.name if self.root is not None else "Untitled"

    # --- Reading ---

    @property
    def cards(self) -> tuple[Card, ...]:
        return tuple(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(tuple(self._cards))

    def get(self, card_id: str) -> Card:
        for card in self._cards:
            if card.id == card_id:
                return card
        raise CardNotFound(card_id)

    # --- Mutation ---

    def mutate(self, op: Callable[[list[Card]], T]) -> T:
        """Apply ``op`` to the card list and flush the result to disk.

        ``op`` receives a working copy of the list and may change it in place.
        The in-memory list is only replaced once the flush succeeds.

        Raises:
            WriteFailure: If the flush fails. The deck keeps its previous cards.
        """
        working = list(self._cards)
        result = op(working)
        if not self._loading and self.root is not None:
            self._write_metadata(self.metadata_path, working)
        self._cards = working
        return result

    def add_card(self, front: str, back: str, now: float) -> Card:
        """Append a new card with the given face tokens."""
        card = Card.new(front, back, now=now)
        self.mutate(lambda cards: cards.append(card))
        logger.debug("Added card %s to %s", card.id, self.name)
        return card

    def add_asset_card(self, front: Asset, back: Asset, now: float) -> Card:
        """Store two assets and append a card referencing them."""
        stored: list[str] = []
        try:
            front_token = self.store_asset(*front)
            stored.append(front_token)
            back_token = self.store_asset(*back)
            stored.append(back_token)
            return self.add_card(front_token, back_token, now)
        except WriteFailure:
            self._delete_assets(ref_name(token) for token in stored)
            raise

    def store_asset(self, data: bytes, extension: str) -> str:
        """Write an asset under a new unique name and return its ``ref://`` token."""
        extension = extension if not extension or extension.startswith(".") else f".{extension}"
        name = f"{uuid.uuid4()}{extension.lower()}"
        try:
            with open(self.asset_dir / name, "xb") as f:
                f.write(data)
        except OSError as exc:
            raise WriteFailure(f"Cannot store asset {name}: {exc}") from exc
        return make_ref(name)

    def remove_card(self, card_id: str) -> Card:
        """Remove a card and delete the asset files it owns."""

        def _remove(cards: list[Card]) -> Card:
            for i, card in enumerate(cards):
                if card.id == card_id:
                    return cards.pop(i)
            raise CardNotFound(card_id)

        removed = self.mutate(_remove)
        if self.root is not None:
            # Assets shared with a remaining card stay
            referenced = {name for card in self._cards for name in card.owned_assets()}
            self._delete_assets(n for n in removed.owned_assets() if n not in referenced)
        logger.debug("Removed card %s from %s", card_id, self.name)
        return removed

    def update_card(self, card: Card) -> Card:
        """Replace the stored card that has ``card.id``."""

        def _update(cards: list[Card]) -> Card:
            for i, existing in enumerate(cards):
                if existing.id == card.id:
                    cards[i] = card
                    return card
            raise CardNotFound(card.id)

        return self.mutate(_update)

    def grade_card(
        self,
        card_id: str,
        grade: int,
        now: float,
        scheduler: SM2Scheduler | None = None,
    ) -> Card:
        """Grade a card with the scheduler and persist its new study state."""
        scheduler = scheduler or SM2Scheduler()
        graded = scheduler.grade_card(self.get(card_id), grade, now)
        return self.update_card(graded)

    def _delete_assets(self, names: Iterable[str]) -> None:
        for name in names:
            if not is_asset_name(name) or name == settings.metadata_filename:
                logger.warning("Not deleting %r: not an asset of %s", name, self.name)
                continue
            try:
                (self.asset_dir / name).unlink(missing_ok=True)
            except OSError as exc:
                raise WriteFailure(f"Cannot delete asset {name}: {exc}") from exc

    # --- Writing ---

    def save_as(self, dest: Path) -> None:
        """Write a copy of the package to ``dest`` and continue working there."""
        self._save(Path(dest), new_id=True)
        self.root = Path(dest)
        self.legacy = False

    def save_to(self, dest: Path) -> None:
        """Write a copy of the package to ``dest``, staying bound to the current root."""
        self._save(Path(dest), new_id=False)

    def _save(self, dest: Path, new_id: bool) -> None:
        if self.root is not None and dest.resolve() == self.root.resolve():
            raise WriteFailure(f"Cannot save {self.name} onto itself at {dest}")
        deck_id = str(uuid.uuid4()) if new_id or self.deck_id is None else self.deck_id
        dest_contents = dest / settings.contents_dirname
        try:
            dest_contents.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise WriteFailure(f"Cannot create package at {dest}: {exc}") from exc

        self._write_metadata(dest_contents / settings.metadata_filename, self._cards, deck_id)

        if self.root is not None:
            try:
                for path in sorted(self.asset_dir.iterdir()):
                    if path.name == settings.metadata_filename or path.name.startswith("."):
                        continue
                    shutil.copy2(path, dest_contents / path.name)
            except OSError as exc:
                raise WriteFailure(f"Cannot copy assets to {dest}: {exc}") from exc

        if new_id:
            self.deck_id = deck_id
        logger.info("Saved %d cards to %s", len(self._cards), dest)

    def _write_metadata(self, path: Path, cards: list[Card], deck_id: str | None = None) -> None:
        """Write metadata via a temp file renamed over ``path``."""
        data = DeckInfo.from_cards(deck_id or self.deck_id or str(uuid.uuid4()), cards).encode()
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=path.parent)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise WriteFailure(f"Cannot write {path}: {exc}") from exc
        logger.debug("Flushed %d cards to %s", len(cards), path)
