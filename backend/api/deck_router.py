"""API routes for decks, cards and grading."""

import logging
import threading

from fastapi import APIRouter, Depends, HTTPException

from backend.api.schemas import (
    CardCreateRequest,
    CardListResponse,
    CardResponse,
    DeckCreateRequest,
    DeckListResponse,
    DeckSummary,
    FaceResponse,
    GradeRequest,
    GradeResponse,
    QueueResponse,
)
from backend.config import epoch_now
from backend.deck.catalog import DeckCatalog
from backend.deck.faces import resolve_face
from backend.deck.package import DeckPackage
from backend.dependencies import get_catalog, get_scheduler
from backend.errors import CardNotFound, DeckNotFound, InvalidGrade, WriteFailure
from backend.models.card import Grade
from backend.models.faces import ImageRef, RichText, Text
from backend.srs.queue import build_queue
from backend.srs.sm2 import SM2Scheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/decks", tags=["decks"])

# Sync routes run in a threadpool; packages allow a single writer at a time
_write_lock = threading.Lock()


def _open_deck(catalog: DeckCatalog, name: str) -> DeckPackage:
    try:
        return catalog.open(name)
    except DeckNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _write_failed(e: WriteFailure) -> HTTPException:
    logger.error("Write failed: %s", e)
    return HTTPException(status_code=500, detail=f"Could not save deck: {e}")


@router.get("", response_model=DeckListResponse)
def decks_list(catalog: DeckCatalog = Depends(get_catalog)) -> DeckListResponse:
    """List the available decks."""
    return DeckListResponse(decks=[DeckSummary(name=name) for name in catalog.names()])


@router.post("", response_model=DeckSummary, status_code=201)
def decks_create(
    request: DeckCreateRequest,
    catalog: DeckCatalog = Depends(get_catalog),
) -> DeckSummary:
    """Create a new, empty deck."""
    with _write_lock:
        try:
            package = catalog.create(request.name)
        except DeckNotFound as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except FileExistsError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except WriteFailure as e:
            raise _write_failed(e) from e
    return DeckSummary(name=package.name)


@router.get("/{name}/cards", response_model=CardListResponse)
def cards_list(name: str, catalog: DeckCatalog = Depends(get_catalog)) -> CardListResponse:
    """List a deck's cards in deck order."""
    deck = _open_deck(catalog, name)
    return CardListResponse(deck=deck.name, cards=[CardResponse.from_card(c) for c in deck])


@router.post("/{name}/cards", response_model=CardResponse, status_code=201)
def cards_add(
    name: str,
    request: CardCreateRequest,
    catalog: DeckCatalog = Depends(get_catalog),
) -> CardResponse:
    """Add a text card to a deck."""
    with _write_lock:
        deck = _open_deck(catalog, name)
        try:
            card = deck.add_card(request.front, request.back, now=epoch_now())
        except WriteFailure as e:
            raise _write_failed(e) from e
    return CardResponse.from_card(card)


@router.delete("/{name}/cards/{card_id}", status_code=204)
def cards_remove(
    name: str,
    card_id: str,
    catalog: DeckCatalog = Depends(get_catalog),
) -> None:
    """Remove a card and its asset files."""
    with _write_lock:
        deck = _open_deck(catalog, name)
        try:
            deck.remove_card(card_id)
        except CardNotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except WriteFailure as e:
            raise _write_failed(e) from e


@router.get("/{name}/cards/{card_id}/faces/{side}", response_model=FaceResponse)
def cards_face(
    name: str,
    card_id: str,
    side: str,
    catalog: DeckCatalog = Depends(get_catalog),
) -> FaceResponse:
    """Resolve the front or back face of a card."""
    if side not in ("front", "back"):
        raise HTTPException(status_code=404, detail=f"Unknown side: {side}")
    deck = _open_deck(catalog, name)
    try:
        card = deck.get(card_id)
    except CardNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    content = resolve_face(card.front if side == "front" else card.back, deck.root)
    match content:
        case Text(text=text):
            return FaceResponse(kind="text", text=text)
        case RichText(data=data):
            return FaceResponse(kind="rich_text", size=len(data))
        case ImageRef(data=data):
            return FaceResponse(kind="image", size=len(data))
        case _:
            return FaceResponse(kind="unresolved")


@router.post("/{name}/cards/{card_id}/grade", response_model=GradeResponse)
def cards_grade(
    name: str,
    card_id: str,
    request: GradeRequest,
    catalog: DeckCatalog = Depends(get_catalog),
    scheduler: SM2Scheduler = Depends(get_scheduler),
) -> GradeResponse:
    """Grade a card on the 0-5 scale and persist its new schedule."""
    try:
        grade = Grade.coerce(request.grade)
    except InvalidGrade as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    with _write_lock:
        deck = _open_deck(catalog, name)
        try:
            card = deck.grade_card(card_id, grade, now=epoch_now(), scheduler=scheduler)
        except CardNotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except WriteFailure as e:
            raise _write_failed(e) from e

    logger.info("Graded card %s in %s: %d", card_id, name, grade)
    return GradeResponse(
        card=CardResponse.from_card(card),
        grade_label=grade.description,
        interval_days=card.study.interval,
    )


@router.get("/{name}/queue", response_model=QueueResponse)
def deck_queue(name: str, catalog: DeckCatalog = Depends(get_catalog)) -> QueueResponse:
    """Return the cards to review now."""
    deck = _open_deck(catalog, name)
    queue = build_queue(deck.cards, now=epoch_now())
    return QueueResponse(
        deck=deck.name,
        due_cards=len(queue.due_cards),
        new_cards=len(queue.new_cards),
        card_ids=[card.id for card in queue.interleaved()],
    )
