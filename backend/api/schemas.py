"""Pydantic schemas for API request/response models."""

from typing import Literal

from pydantic import BaseModel, Field

from backend.models.card import Card

# --- Decks ---


class DeckCreateRequest(BaseModel):
    """Request to create a new, empty deck."""

    name: str = Field(min_length=1)


class DeckSummary(BaseModel):
    """A deck as listed by the catalog."""

    name: str


class DeckListResponse(BaseModel):
    decks: list[DeckSummary]


# --- Cards ---


class CardCreateRequest(BaseModel):
    """Request to add a text card."""

    front: str = Field(min_length=1)
    back: str = Field(min_length=1)


class CardResponse(BaseModel):
    """A card with its face tokens and study state."""

    id: str
    front: str
    back: str
    easiness_factor: float
    repetition: int
    interval: int
    previous_review_at: float
    next_review_at: float

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
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


class CardListResponse(BaseModel):
    deck: str
    cards: list[CardResponse]


class FaceResponse(BaseModel):
    """A resolved card face. Binary content is described, not returned."""

    kind: Literal["text", "rich_text", "image", "unresolved"]
    text: str | None = None
    size: int | None = None  # Bytes, for rich text and images


# --- Grading ---


class GradeRequest(BaseModel):
    """Request to grade a card on the 0-5 recall scale."""

    grade: int


class GradeResponse(BaseModel):
    card: CardResponse
    grade_label: str
    interval_days: int


class QueueResponse(BaseModel):
    """Cards to review now, reviews interleaved with new cards."""

    deck: str
    due_cards: int
    new_cards: int
    card_ids: list[str]
