"""Queue management for deck review sessions.

Handles card prioritization, mixing new cards with reviews,
and session limits to prevent overwhelm.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from backend.config import settings
from backend.models.card import Card

logger = logging.getLogger(__name__)


@dataclass
class QueueConfig:
    """Configuration for queue building."""

    max_reviews: int = settings.max_reviews_per_session
    max_new: int = settings.max_new_cards_per_session


@dataclass
class ReviewQueue:
    """A prepared queue of cards for a review session."""

    due_cards: list[Card] = field(default_factory=list)
    new_cards: list[Card] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.due_cards) + len(self.new_cards)

    def interleaved(self) -> list[Card]:
        """Return cards interleaved: mostly reviews with new cards mixed in.

        Strategy: Insert new cards at regular intervals within the review queue
        to maintain engagement without overwhelming with unfamiliar material.
        """
        if not self.new_cards:
            return list(self.due_cards)
        if not self.due_cards:
            return list(self.new_cards)

        result: list[Card] = []
        new = list(self.new_cards)

        # Insert a new card every N reviews
        interval = max(1, len(self.due_cards) // (len(new) + 1))
        new_idx = 0

        for i, card in enumerate(self.due_cards):
            result.append(card)
            if new_idx < len(new) and (i + 1) % interval == 0:
                result.append(new[new_idx])
                new_idx += 1

        # Append any remaining new cards at the end
        result.extend(new[new_idx:])
        return result


def build_queue(
    cards: Iterable[Card],
    now: float,
    config: QueueConfig | None = None,
) -> ReviewQueue:
    """Build a review queue from a deck's cards.

    Due cards are those reviewed at least once whose next review time has
    passed, most overdue first. New cards have never been reviewed and keep
    their deck order.

    Args:
        cards: The deck's cards, in deck order.
        now: Current time in epoch seconds.
        config: Queue limits.

    Returns:
        A ReviewQueue with due and new cards.
    """
    config = config or QueueConfig()
    cards = list(cards)

    due_cards = sorted(c for c in cards if not c.study.is_new and c.study.is_due(now))
    new_cards = [c for c in cards if c.study.is_new]

    queue = ReviewQueue(
        due_cards=due_cards[: max(0, config.max_reviews)],
        new_cards=new_cards[: max(0, config.max_new)],
    )

    logger.info(
        "Built queue: %d due + %d new = %d total",
        len(queue.due_cards),
        len(queue.new_cards),
        queue.total,
    )
    return queue
