"""Deck packages on disk: persistence, face resolution and the deck catalog."""

from backend.deck.catalog import DeckCatalog, list_decks
from backend.deck.faces import cards_from_folder, resolve_face
from backend.deck.package import DeckPackage

__all__ = ["DeckCatalog", "DeckPackage", "cards_from_folder", "list_decks", "resolve_face"]
