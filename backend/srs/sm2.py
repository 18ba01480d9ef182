"""SM-2 spaced repetition scheduler.

A variant of the SuperMemo SM-2 algorithm. Reference:
https://www.supermemo.com/en/blog/application-of-a-computer-to-improve-the-results-obtained-in-working-with-the-supermemo-method

Key concepts:
- Easiness factor (EF): per-card multiplier for interval growth, floored at 1.3.
- Repetition: consecutive successful recalls since the last failure.
- Interval: whole days until the card is due again.
- Grade: 0-5 recall quality; below 3 is a failed recall.

Deviation from textbook SM-2: a grade of exactly 3 forces the interval to 0
so a barely recalled card comes back in the same session.
"""

import math
from dataclasses import dataclass, replace

from backend.config import settings
from backend.models.card import Card, Grade, StudyState

SECONDS_PER_DAY = 86400

# Global easiness factor minimum; a configured floor may only raise it
MIN_EASINESS_FACTOR = 1.3

# Fixed intervals for the first two successful repetitions
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


@dataclass
class ReviewResult:
    """The result of grading a card's study state."""

    new_state: StudyState
    previous_state: StudyState
    grade: Grade

    @property
    def interval_days(self) -> int:
        return self.new_state.interval


class SM2Scheduler:
    """Computes the next study state of a card from a recall grade."""

    def __init__(self, min_easiness_factor: float | None = None) -> None:
        """Initialize with an easiness factor floor (defaults to the configured one)."""
        if min_easiness_factor is None:
            min_easiness_factor = settings.min_easiness_factor
        if min_easiness_factor < MIN_EASINESS_FACTOR:
            raise ValueError(
                f"min_easiness_factor must be at least {MIN_EASINESS_FACTOR}, "
                f"got {min_easiness_factor}"
            )
        self.min_easiness_factor = min_easiness_factor

    def grade(self, study: StudyState, grade: int, now: float) -> StudyState:
        """Return the study state after a review graded ``grade`` at ``now``.

        Args:
            study: Current study state. Not modified.
            grade: Recall quality, 0-5.
            now: Review time in epoch seconds.

        Returns:
            A new StudyState.

        Raises:
            InvalidGrade: If ``grade`` is not an integer from 0 to 5.
        """
        grade = Grade.coerce(grade)

        if not grade.passed:
            # Relearn from the first interval; ease is left alone
            easiness_factor = study.easiness_factor
            repetition = 0
            interval = 0
        else:
            q = Grade.PERFECT - grade
            easiness_factor = self._next_easiness_factor(study.easiness_factor, q)
            repetition = study.repetition + 1
            interval = self._interval_for(repetition, easiness_factor)

        if grade == Grade.DIFFICULT:
            interval = 0

        return replace(
            study,
            easiness_factor=easiness_factor,
            repetition=repetition,
            interval=interval,
            previous_review_at=study.next_review_at,
            next_review_at=now + interval * SECONDS_PER_DAY,
        )

    def review(self, study: StudyState, grade: int, now: float) -> ReviewResult:
        """Grade a study state and return both the old and new states."""
        new_state = self.grade(study, grade, now)
        return ReviewResult(new_state=new_state, previous_state=study, grade=Grade(grade))

    def grade_card(self, card: Card, grade: int, now: float) -> Card:
        """Return a copy of ``card`` carrying its post-review study state."""
        return replace(card, study=self.grade(card.study, grade, now))

    def _next_easiness_factor(self, easiness_factor: float, q: int) -> float:
        """EF' = EF + (0.1 - q * (0.08 + q * 0.02)), floored."""
        new_ef = easiness_factor + (0.1 - q * (0.08 + q * 0.02))
        return max(new_ef, self.min_easiness_factor)

    def _interval_for(self, repetition: int, easiness_factor: float) -> int:
        if repetition == 1:
            return FIRST_INTERVAL
        if repetition == 2:
            return SECOND_INTERVAL
        return math.ceil((repetition - 1) * easiness_factor)
