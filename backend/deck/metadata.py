"""On-disk metadata record of a deck package."""

import uuid
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend.errors import CorruptMetadata
from backend.models.card import Card, StudyState


class CardRecord(BaseModel):
    """One serialized card. Field names on disk are camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    front: str
    back: str
    easiness_factor: float = Field(default=2.5, alias="easinessFactor", ge=1.3)
    repetition: int = Field(default=0, ge=0)
    interval: int = Field(default=0, ge=0)
    previous_review_at: float = Field(default=0.0, alias="previousReviewAt")
    next_review_at: float = Field(default=0.0, alias="nextReviewAt")

    @classmethod
    def from_card(cls, card: Card) -> "CardRecord":
        return cls(
            id=card.id,
            front=card.front,
            back=card.back,
            easiness_factor=card.study.easiness_factor,
            repetition=card.study.repetition,
            interval=card.study.interval,
            previous_review_at=card.study.previous_review_at,
            next_review_at=card.study.next_review_at,
        )

    def to_card(self) -> Card:
        return Card(
            front=self.front,
            back=self.back,
            id=self.id,
            study=StudyState(
                easiness_factor=self.easiness_factor,
                repetition=self.repetition,
                interval=self.interval,
                previous_review_at=self.previous_review_at,
                next_review_at=self.next_review_at,
            ),
        )


class DeckInfo(BaseModel):
    """The whole metadata file: deck id plus its ordered card list."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    cards: list[CardRecord] = Field(default_factory=list)

    @classmethod
    def from_cards(cls, deck_id: str, cards: list[Card]) -> "DeckInfo":
        return cls(id=deck_id, cards=[CardRecord.from_card(c) for c in cards])

    def to_cards(self) -> list[Card]:
        return [record.to_card() for record in self.cards]

    def encode(self) -> bytes:
        return self.model_dump_json(by_alias=True, indent=2).encode("utf-8")


def read_metadata(path: Path) -> DeckInfo:
    """Read and validate a metadata file.

    Raises:
        FileNotFoundError: If the file does not exist.
        CorruptMetadata: If the file cannot be read or parsed.
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as exc:
        raise CorruptMetadata(f"Cannot read {path}: {exc}") from exc

    try:
        return DeckInfo.model_validate_json(raw)
    except ValidationError as exc:
        raise CorruptMetadata(f"Cannot parse {path}: {exc.error_count()} errors") from exc
