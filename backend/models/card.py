"""Flashcard model: two face tokens plus SM-2 study state."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum

from backend.config import settings
from backend.errors import InvalidGrade
from backend.models.faces import is_ref, ref_name

_GRADE_LABELS = {
    0: "complete blackout",
    1: "incorrect response; the correct one remembered",
    2: "incorrect response; where the correct one seemed easy to recall",
    3: "correct response recalled with serious difficulty",
    4: "correct response after a hesitation",
    5: "perfect response",
}


class Grade(IntEnum):
    """Quality of recall on the 0-5 SM-2 scale."""

    BLACKOUT = 0
    REMEMBERED = 1
    SEEMED_EASY = 2
    DIFFICULT = 3
    HESITATED = 4
    PERFECT = 5

    @property
    def description(self) -> str:
        return _GRADE_LABELS[self.value]

    @property
    def passed(self) -> bool:
        """Whether this grade counts as a successful recall."""
        return self >= Grade.DIFFICULT

    @classmethod
    def coerce(cls, value: object) -> Grade:
        """Convert an int-like grade, raising InvalidGrade for anything off the scale."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidGrade(value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidGrade(value) from None


@dataclass
class StudyState:
    """Scheduling state of a card."""

    easiness_factor: float = 2.5
    repetition: int = 0  # Consecutive successful reviews since the last reset
    interval: int = 0  # Days until the next review
    previous_review_at: float = 0.0  # 0 means never reviewed
    next_review_at: float = 0.0

    @property
    def is_new(self) -> bool:
        return self.previous_review_at == 0

    def is_due(self, now: float) -> bool:
        return self.next_review_at <= now


@dataclass
class Card:
    """A flashcard whose faces are tokens: inline text or ``ref://`` asset references."""

    front: str
    back: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    study: StudyState = field(default_factory=StudyState, compare=False)

    @classmethod
    def new(
        cls,
        front: str,
        back: str,
        *,
        now: float,
        easiness_factor: float | None = None,
    ) -> Card:
        """Create a never-reviewed card that is due immediately."""
        if easiness_factor is None:
            easiness_factor = settings.default_easiness_factor
        return cls(
            front=front,
            back=back,
            study=StudyState(easiness_factor=easiness_factor, next_review_at=now),
        )

    def __hash__(self) -> int:
        return hash((self.id, self.front, self.back))

    def __lt__(self, other: Card) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.study.next_review_at < other.study.next_review_at

    def owned_assets(self) -> Iterator[str]:
        """Yield the asset filenames this card's faces reference."""
        for token in (self.front, self.back):
            if is_ref(token):
                yield ref_name(token)
