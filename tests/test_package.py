"""Tests for deck package persistence."""

import json
from pathlib import Path

import pytest

from backend.deck.package import DeckPackage
from backend.errors import CardNotFound, InvalidGrade, WriteFailure
from backend.models.card import Card, StudyState
from backend.srs.sm2 import SM2Scheduler

T0 = 1_700_000_000.0


def _metadata(root: Path) -> dict:
    return json.loads((root / "Contents" / "Info.json").read_text(encoding="utf-8"))


@pytest.fixture
def deck(tmp_path: Path) -> DeckPackage:
    package = DeckPackage.create_empty()
    package.attach_to_root(tmp_path / "Capitals")
    return package


class TestCreate:
    def test_attach_writes_empty_package(self, tmp_path: Path) -> None:
        package = DeckPackage.create_empty()
        assert package.root is None
        package.attach_to_root(tmp_path / "New")
        data = _metadata(tmp_path / "New")
        assert data == {"id": package.deck_id, "cards": []}

    def test_attach_refuses_existing_package(self, deck: DeckPackage) -> None:
        with pytest.raises(FileExistsError):
            DeckPackage.create_empty().attach_to_root(deck.root)

    def test_attach_refuses_legacy_folder(self, tmp_path: Path) -> None:
        contents = tmp_path / "Legacy" / "Contents"
        contents.mkdir(parents=True)
        (contents / "one.front.png").write_bytes(b"1f")
        (contents / "one.back.png").write_bytes(b"1b")
        with pytest.raises(FileExistsError):
            DeckPackage.create_empty().attach_to_root(tmp_path / "Legacy")
        assert not (contents / "Info.json").exists()
        assert len(DeckPackage.open(tmp_path / "Legacy")) == 1

    def test_unattached_mutation_stays_in_memory(self) -> None:
        package = DeckPackage.create_empty()
        package.add_card("front", "back", now=T0)
        assert len(package) == 1


class TestPersistence:
    def test_add_flushes_immediately(self, deck: DeckPackage) -> None:
        card = deck.add_card("France", "Paris", now=T0)
        records = _metadata(deck.root)["cards"]
        assert records == [
            {
                "id": card.id,
                "front": "France",
                "back": "Paris",
                "easinessFactor": 2.5,
                "repetition": 0,
                "interval": 0,
                "previousReviewAt": 0.0,
                "nextReviewAt": T0,
            }
        ]

    def test_round_trip(self, deck: DeckPackage) -> None:
        deck.add_card("France", "Paris", now=T0)
        deck.add_card("Japan", "Tokyo", now=T0)
        deck.add_card("Peru", "Lima", now=T0)
        second = deck.cards[1]
        deck.grade_card(second.id, 5, now=T0 + 10)

        reopened = DeckPackage.open(deck.root)
        assert reopened.deck_id == deck.deck_id
        assert [c.id for c in reopened] == [c.id for c in deck]
        assert reopened.cards == deck.cards
        assert [c.study for c in reopened] == [c.study for c in deck]

    def test_grade_persists_study_state(self, deck: DeckPackage) -> None:
        card = deck.add_card("France", "Paris", now=T0)
        graded = deck.grade_card(card.id, 5, now=T0 + 60, scheduler=SM2Scheduler())
        assert graded.study.repetition == 1
        record = _metadata(deck.root)["cards"][0]
        assert record["repetition"] == 1
        assert record["interval"] == 1
        assert record["previousReviewAt"] == T0
        assert record["nextReviewAt"] == T0 + 60 + 86400

    def test_invalid_grade_leaves_deck_unchanged(self, deck: DeckPackage) -> None:
        card = deck.add_card("France", "Paris", now=T0)
        before = (deck.root / "Contents" / "Info.json").read_bytes()
        with pytest.raises(InvalidGrade):
            deck.grade_card(card.id, 9, now=T0)
        assert deck.get(card.id).study == card.study
        assert (deck.root / "Contents" / "Info.json").read_bytes() == before

    def test_update_unknown_card(self, deck: DeckPackage) -> None:
        with pytest.raises(CardNotFound):
            deck.update_card(Card(front="a", back="b"))

    def test_mutate_returns_op_result(self, deck: DeckPackage) -> None:
        deck.add_card("b", "2", now=T0)
        deck.add_card("a", "1", now=T0)
        count = deck.mutate(lambda cards: cards.sort(key=lambda c: c.front) or len(cards))
        assert count == 2
        assert [c["front"] for c in _metadata(deck.root)["cards"]] == ["a", "b"]

    def test_write_failure_preserves_memory(self, deck: DeckPackage, monkeypatch) -> None:
        deck.add_card("France", "Paris", now=T0)

        def fail(*args, **kwargs):
            raise PermissionError("read-only")

        monkeypatch.setattr("backend.deck.package.os.replace", fail)
        with pytest.raises(WriteFailure):
            deck.add_card("Japan", "Tokyo", now=T0)
        assert [c.front for c in deck] == ["France"]
        assert len(_metadata(deck.root)["cards"]) == 1
        # No temp files left behind
        assert sorted(p.name for p in (deck.root / "Contents").iterdir()) == ["Info.json"]


class TestLoad:
    def test_missing_metadata_is_empty(self, tmp_path: Path) -> None:
        (tmp_path / "Empty" / "Contents").mkdir(parents=True)
        package = DeckPackage.open(tmp_path / "Empty")
        assert package.cards == ()

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        assert DeckPackage.open(tmp_path / "Nowhere").cards == ()

    def test_corrupt_metadata_is_empty(self, tmp_path: Path) -> None:
        contents = tmp_path / "Broken" / "Contents"
        contents.mkdir(parents=True)
        (contents / "Info.json").write_text("{not json", encoding="utf-8")
        package = DeckPackage.open(tmp_path / "Broken")
        assert package.cards == ()

    def test_invalid_study_state_is_corrupt(self, tmp_path: Path) -> None:
        contents = tmp_path / "Broken" / "Contents"
        contents.mkdir(parents=True)
        record = {"id": "x", "front": "a", "back": "b", "easinessFactor": 0.5}
        (contents / "Info.json").write_text(json.dumps({"id": "d", "cards": [record]}))
        assert DeckPackage.open(tmp_path / "Broken").cards == ()

    def test_load_does_not_rewrite(self, deck: DeckPackage) -> None:
        deck.add_card("France", "Paris", now=T0)
        path = deck.root / "Contents" / "Info.json"
        mtime = path.stat().st_mtime_ns
        DeckPackage.open(deck.root)
        assert path.stat().st_mtime_ns == mtime

    def test_legacy_folder(self, tmp_path: Path) -> None:
        contents = tmp_path / "Legacy" / "Contents"
        contents.mkdir(parents=True)
        (contents / "one.front.png").write_bytes(b"1f")
        (contents / "one.back.png").write_bytes(b"1b")
        (contents / "two.front.png").write_bytes(b"2f")
        package = DeckPackage.open(tmp_path / "Legacy")
        assert package.legacy
        assert [(c.front, c.back) for c in package] == [
            ("ref://one.front.png", "ref://one.back.png")
        ]
        assert not (contents / "Info.json").exists()


class TestAssets:
    def test_add_asset_card(self, deck: DeckPackage) -> None:
        card = deck.add_asset_card((b"front", ".png"), (b"back", "jpg"), now=T0)
        assert card.front.startswith("ref://") and card.front.endswith(".png")
        assert card.back.endswith(".jpg")
        names = list(card.owned_assets())
        assert (deck.root / "Contents" / names[0]).read_bytes() == b"front"
        assert (deck.root / "Contents" / names[1]).read_bytes() == b"back"
        assert names[0] != names[1]

    def test_remove_card_deletes_assets(self, deck: DeckPackage) -> None:
        keep = deck.add_asset_card((b"k1", ".png"), (b"k2", ".png"), now=T0)
        card = deck.add_asset_card((b"f", ".png"), (b"b", ".png"), now=T0)
        removed = deck.remove_card(card.id)
        assert removed == card
        remaining = sorted(p.name for p in (deck.root / "Contents").iterdir())
        assert remaining == sorted(["Info.json", *keep.owned_assets()])
        assert [c.id for c in DeckPackage.open(deck.root)] == [keep.id]

    def test_remove_card_never_deletes_metadata(self, deck: DeckPackage) -> None:
        keep = deck.add_card("France", "Paris", now=T0)
        card = deck.add_card("ref://Info.json", "x", now=T0)
        deck.remove_card(card.id)
        assert (deck.root / "Contents" / "Info.json").exists()
        assert [c.id for c in DeckPackage.open(deck.root)] == [keep.id]

    def test_remove_card_stays_inside_package(self, deck: DeckPackage, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("keep me")
        card = deck.add_card("ref://../../outside.txt", "x", now=T0)
        deck.remove_card(card.id)
        assert outside.read_text() == "keep me"

    def test_remove_card_keeps_shared_asset(self, deck: DeckPackage) -> None:
        first = deck.add_asset_card((b"shared", ".png"), (b"own", ".png"), now=T0)
        second = deck.add_card(first.front, "caption", now=T0)
        shared, own = first.owned_assets()
        deck.remove_card(first.id)
        assert (deck.root / "Contents" / shared).read_bytes() == b"shared"
        assert not (deck.root / "Contents" / own).exists()
        assert DeckPackage.open(deck.root).cards == (second,)

    def test_remove_text_card(self, deck: DeckPackage) -> None:
        card = deck.add_card("France", "Paris", now=T0)
        deck.remove_card(card.id)
        assert _metadata(deck.root)["cards"] == []

    def test_remove_unknown_card(self, deck: DeckPackage) -> None:
        with pytest.raises(CardNotFound):
            deck.remove_card("missing")

    def test_failed_add_cleans_up_assets(self, deck: DeckPackage, monkeypatch) -> None:
        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("backend.deck.package.os.replace", fail)
        with pytest.raises(WriteFailure):
            deck.add_asset_card((b"f", ".png"), (b"b", ".png"), now=T0)
        assert sorted(p.name for p in (deck.root / "Contents").iterdir()) == ["Info.json"]
        assert deck.cards == ()


class TestSaveAs:
    def test_save_to_copies_assets(self, deck: DeckPackage, tmp_path: Path) -> None:
        card = deck.add_asset_card((b"f", ".png"), (b"b", ".png"), now=T0)
        deck.add_card("France", "Paris", now=T0)
        original_root = deck.root
        original_id = deck.deck_id

        deck.save_to(tmp_path / "Backup")

        assert deck.root == original_root
        assert deck.deck_id == original_id
        copy = DeckPackage.open(tmp_path / "Backup")
        assert copy.cards == deck.cards
        assert copy.deck_id == original_id
        for name in card.owned_assets():
            assert (tmp_path / "Backup" / "Contents" / name).read_bytes() in (b"f", b"b")

    def test_save_as_rebinds_with_new_id(self, deck: DeckPackage, tmp_path: Path) -> None:
        deck.add_card("France", "Paris", now=T0)
        original_id = deck.deck_id

        deck.save_as(tmp_path / "Renamed")

        assert deck.root == tmp_path / "Renamed"
        assert deck.deck_id != original_id
        deck.add_card("Japan", "Tokyo", now=T0)
        assert len(_metadata(tmp_path / "Renamed")["cards"]) == 2
        assert len(_metadata(tmp_path / "Capitals")["cards"]) == 1

    def test_save_onto_own_root_rejected(self, deck: DeckPackage) -> None:
        deck.add_asset_card((b"f", ".png"), (b"b", ".png"), now=T0)
        before = (deck.root / "Contents" / "Info.json").read_bytes()
        original_id = deck.deck_id
        with pytest.raises(WriteFailure):
            deck.save_to(deck.root)
        with pytest.raises(WriteFailure):
            deck.save_as(deck.root / ".")
        assert deck.deck_id == original_id
        assert (deck.root / "Contents" / "Info.json").read_bytes() == before

    def test_save_as_attaches_new_package(self, tmp_path: Path) -> None:
        package = DeckPackage.create_empty()
        package.add_card("a", "b", now=T0)
        package.save_as(tmp_path / "Fresh")
        assert [c.front for c in DeckPackage.open(tmp_path / "Fresh")] == ["a"]

    def test_study_state_round_trip_floats(self, tmp_path: Path) -> None:
        package = DeckPackage.create_empty()
        package.attach_to_root(tmp_path / "Floats")
        card = Card(
            front="a",
            back="b",
            study=StudyState(
                easiness_factor=2.36,
                repetition=3,
                interval=7,
                previous_review_at=T0 + 0.125,
                next_review_at=T0 + 7 * 86400 + 0.125,
            ),
        )
        package.mutate(lambda cards: cards.append(card))
        assert DeckPackage.open(tmp_path / "Floats").get(card.id).study == card.study
