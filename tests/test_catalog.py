"""Tests for the deck catalog."""

from pathlib import Path

import pytest

from backend.deck.catalog import DeckCatalog, list_decks
from backend.errors import DeckNotFound


def test_list_decks_skips_hidden(tmp_path: Path) -> None:
    for name in ["Animals", ".hidden", "Capitals"]:
        (tmp_path / name).mkdir()
    (tmp_path / "notes.txt").write_text("not a deck")
    assert [p.name for p in list_decks(tmp_path)] == ["Animals", "Capitals"]


def test_list_decks_missing_root(tmp_path: Path) -> None:
    assert list_decks(tmp_path / "missing") == []


def test_list_decks_root_is_a_file(tmp_path: Path) -> None:
    root = tmp_path / "decks"
    root.write_text("not a directory")
    assert list_decks(root) == []


def test_listing_does_not_parse_metadata(tmp_path: Path) -> None:
    contents = tmp_path / "Broken" / "Contents"
    contents.mkdir(parents=True)
    (contents / "Info.json").write_text("garbage")
    assert DeckCatalog(tmp_path).names() == ["Broken"]


class TestDeckCatalog:
    def test_create_and_open(self, tmp_path: Path) -> None:
        catalog = DeckCatalog(tmp_path)
        created = catalog.create("Verbs")
        created.add_card("to be", "ser", now=0.0)

        opened = catalog.open("Verbs")
        assert opened.cards == created.cards
        assert catalog.names() == ["Verbs"]

    def test_create_existing(self, tmp_path: Path) -> None:
        catalog = DeckCatalog(tmp_path)
        catalog.create("Verbs")
        with pytest.raises(FileExistsError):
            catalog.create("Verbs")

    def test_create_over_legacy_deck(self, tmp_path: Path) -> None:
        contents = tmp_path / "Shapes" / "Contents"
        contents.mkdir(parents=True)
        (contents / "circle.front.png").write_bytes(b"f")
        (contents / "circle.back.png").write_bytes(b"b")
        catalog = DeckCatalog(tmp_path)
        with pytest.raises(FileExistsError):
            catalog.create("Shapes")
        assert len(catalog.open("Shapes")) == 1

    def test_open_missing(self, tmp_path: Path) -> None:
        with pytest.raises(DeckNotFound):
            DeckCatalog(tmp_path).open("Nope")

    @pytest.mark.parametrize("name", ["", ".hidden", "../outside", "a/b"])
    def test_invalid_names(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(DeckNotFound):
            DeckCatalog(tmp_path).path_for(name)
