"""CLI interface for FlashDeck.

Usage:
    python -m flashdeck decks                        List decks
    python -m flashdeck create "Capitals"            Create an empty deck
    python -m flashdeck cards Capitals               List a deck's cards
    python -m flashdeck add Capitals "France" "Paris"
    python -m flashdeck add-image Capitals q.png a.png
    python -m flashdeck remove Capitals <card-id>
    python -m flashdeck due Capitals                 Show how many cards are due
    python -m flashdeck review Capitals              Start a review session
    python -m flashdeck copy Capitals /tmp/Backup    Copy a deck package
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from backend.config import epoch_now, settings
from backend.deck.catalog import DeckCatalog
from backend.deck.faces import resolve_face
from backend.deck.package import DeckPackage
from backend.errors import FlashDeckError
from backend.models.card import Card, Grade
from backend.models.faces import ImageRef, RichText, Text
from backend.srs.queue import QueueConfig, build_queue
from backend.srs.sm2 import SM2Scheduler

logger = logging.getLogger(__name__)


def _catalog(args: argparse.Namespace) -> DeckCatalog:
    return DeckCatalog(args.root or settings.decks_root)


def _format_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def describe_face(deck: DeckPackage, token: str) -> str:
    """Return a one-line terminal rendition of a card face."""
    content = resolve_face(token, deck.root)
    match content:
        case Text(text=text):
            return text
        case RichText(data=data):
            return f"[rich text, {len(data)} bytes]"
        case ImageRef(token=ref, data=data):
            return f"[image {ref}, {len(data)} bytes]"
        case _:
            return f"[unavailable: {token}]"


def cmd_decks(args: argparse.Namespace) -> None:
    """List the decks in the catalog root."""
    names = _catalog(args).names()
    if not names:
        print("  No decks yet. Create one with: python -m flashdeck create NAME")
        return
    for name in names:
        print(f"  {name}")


def cmd_create(args: argparse.Namespace) -> None:
    """Create a new, empty deck."""
    deck = _catalog(args).create(args.name)
    print(f"  Created deck '{deck.name}' at {deck.root}")


def cmd_cards(args: argparse.Namespace) -> None:
    """List a deck's cards with their schedule."""
    deck = _catalog(args).open(args.deck)
    if not len(deck):
        print(f"  '{deck.name}' has no cards.")
        return
    print(f"\n  {deck.name}: {len(deck)} cards\n")
    for i, card in enumerate(deck, 1):
        due = "new" if card.study.is_new else f"due {_format_time(card.study.next_review_at)}"
        print(f"  {i:>3}. {describe_face(deck, card.front)} -> {describe_face(deck, card.back)}")
        print(f"       id={card.id}  EF={card.study.easiness_factor:.2f}  {due}")
    print()


def cmd_add(args: argparse.Namespace) -> None:
    """Add a text card."""
    deck = _catalog(args).open(args.deck)
    card = deck.add_card(args.front, args.back, now=epoch_now())
    print(f"  Added card {card.id}")


def cmd_add_image(args: argparse.Namespace) -> None:
    """Add a card whose faces are image (or other asset) files."""
    deck = _catalog(args).open(args.deck)
    front_path = Path(args.front_file)
    back_path = Path(args.back_file)
    try:
        front = (front_path.read_bytes(), front_path.suffix)
        back = (back_path.read_bytes(), back_path.suffix)
    except OSError as e:
        raise FlashDeckError(f"Cannot read face file: {e}") from e
    card = deck.add_asset_card(front, back, now=epoch_now())
    print(f"  Added card {card.id} ({card.front}, {card.back})")


def cmd_remove(args: argparse.Namespace) -> None:
    """Remove a card and its asset files."""
    deck = _catalog(args).open(args.deck)
    deck.remove_card(args.card_id)
    print(f"  Removed card {args.card_id}")


def cmd_due(args: argparse.Namespace) -> None:
    """Show how many cards are due."""
    deck = _catalog(args).open(args.deck)
    queue = build_queue(deck.cards, now=epoch_now())
    print(f"  {len(queue.due_cards)} cards due, {len(queue.new_cards)} new cards available")


def review_card(deck: DeckPackage, card: Card, scheduler: SM2Scheduler) -> Card | None:
    """Show one card, ask for a grade and persist it. Returns None when the user quits."""
    print(f"  Q: {describe_face(deck, card.front)}")
    if input("  [enter to flip, q to quit] ").strip().lower() == "q":
        return None
    print(f"  A: {describe_face(deck, card.back)}")
    for grade in Grade:
        print(f"    {grade.value}  {grade.description}")

    while True:
        response = input("  Grade [0-5, q=quit]: ").strip().lower()
        if response == "q":
            return None
        try:
            grade = Grade.coerce(int(response))
        except (ValueError, FlashDeckError):
            print("  Please enter a number from 0 to 5.")
            continue
        return deck.grade_card(card.id, grade, now=epoch_now(), scheduler=scheduler)


def cmd_review(args: argparse.Namespace) -> None:
    """Run an interactive review session."""
    deck = _catalog(args).open(args.deck)
    scheduler = SM2Scheduler(min_easiness_factor=settings.min_easiness_factor)
    config = QueueConfig(max_reviews=args.max_cards, max_new=args.new_cards)
    queue = build_queue(deck.cards, now=epoch_now(), config=config)

    if not queue.total:
        print("\nNo cards due for review. You're all caught up!")
        return

    print(f"\n  Review Session: {deck.name}")
    print(f"  {len(queue.due_cards)} due + {len(queue.new_cards)} new = {queue.total} cards\n")

    reviewed = 0
    for i, card in enumerate(queue.interleaved(), 1):
        label = f"  [{i}/{queue.total}]"
        if card.study.is_new:
            label += " (NEW)"
        print(label)
        graded = review_card(deck, card, scheduler)
        if graded is None:
            print("\n  Session ended early.")
            break
        reviewed += 1
        if graded.study.interval:
            print(f"  Next review in {graded.study.interval} days\n")
        else:
            print("  Review again soon\n")

    print(f"\n  Session Complete! Reviewed: {reviewed}\n")


def cmd_copy(args: argparse.Namespace) -> None:
    """Copy a deck package, assets included, to another directory."""
    deck = _catalog(args).open(args.deck)
    deck.save_to(Path(args.dest))
    print(f"  Copied '{deck.name}' to {args.dest}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flashdeck",
        description="FlashDeck spaced repetition flashcards",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--root", type=Path, default=None, help="Decks root directory")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("decks", help="List decks")

    create_parser = subparsers.add_parser("create", help="Create an empty deck")
    create_parser.add_argument("name", help="Deck name")

    cards_parser = subparsers.add_parser("cards", help="List a deck's cards")
    cards_parser.add_argument("deck")

    add_parser = subparsers.add_parser("add", help="Add a text card")
    add_parser.add_argument("deck")
    add_parser.add_argument("front", help="Front text")
    add_parser.add_argument("back", help="Back text")

    add_image_parser = subparsers.add_parser("add-image", help="Add a card from two files")
    add_image_parser.add_argument("deck")
    add_image_parser.add_argument("front_file", help="Front face file (.png, .jpg, .rtf, .txt)")
    add_image_parser.add_argument("back_file", help="Back face file")

    remove_parser = subparsers.add_parser("remove", help="Remove a card")
    remove_parser.add_argument("deck")
    remove_parser.add_argument("card_id")

    due_parser = subparsers.add_parser("due", help="Show cards due for review")
    due_parser.add_argument("deck")

    review_parser = subparsers.add_parser("review", help="Start a review session")
    review_parser.add_argument("deck")
    review_parser.add_argument(
        "--max-cards", type=int, default=settings.max_reviews_per_session, help="Max due cards"
    )
    review_parser.add_argument(
        "--new-cards", type=int, default=settings.max_new_cards_per_session, help="Max new cards"
    )

    copy_parser = subparsers.add_parser("copy", help="Copy a deck package")
    copy_parser.add_argument("deck")
    copy_parser.add_argument("dest", help="Destination package directory")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the FlashDeck CLI application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 0

    cmd_map = {
        "decks": cmd_decks,
        "create": cmd_create,
        "cards": cmd_cards,
        "add": cmd_add,
        "add-image": cmd_add_image,
        "remove": cmd_remove,
        "due": cmd_due,
        "review": cmd_review,
        "copy": cmd_copy,
    }

    try:
        cmd_map[args.command](args)
    except (FlashDeckError, FileExistsError) as e:
        print(f"  Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
