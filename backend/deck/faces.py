"""Face resolution: turning card face tokens into displayable content.

A token is inline text, or ``ref://<filename>`` naming a file in the
package's asset area. Legacy decks have no metadata at all: cards are
derived from ``*.front.*`` / ``*.back.*`` file pairs in the asset area.
"""

import logging
import uuid
from pathlib import Path

from backend.config import settings
from backend.errors import ResourceNotFound
from backend.models.card import Card, StudyState
from backend.models.faces import FaceContent, ImageRef, RichText, Text, is_ref, make_ref, ref_name

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg"}
RICH_TEXT_EXTENSIONS = {".rtf"}
TEXT_EXTENSIONS = {".txt"}

FRONT_MARKER = ".front."
BACK_MARKER = ".back."

# Namespace for ids of cards derived from legacy front/back file pairs
LEGACY_CARD_NAMESPACE = uuid.UUID("6f1c1b0e-5d8a-4a57-9b3e-0c2f7f1e9a41")


def asset_dir(package_root: Path) -> Path:
    """Return the asset area of a package."""
    return Path(package_root) / settings.contents_dirname


def is_asset_name(name: str) -> bool:
    """Whether ``name`` is a single filename inside the asset area."""
    return bool(name) and name == Path(name).name and name not in {".", ".."}


def _asset_path(package_root: Path, name: str) -> Path:
    if not is_asset_name(name):
        raise ResourceNotFound(f"Invalid asset name: {name!r}")
    return asset_dir(package_root) / name


def load_face(token: str, package_root: Path) -> FaceContent | None:
    """Resolve a face token, raising if a referenced asset is missing.

    Returns None for references with an unsupported extension.

    Raises:
        ResourceNotFound: If the referenced file cannot be read.
    """
    if not is_ref(token):
        return Text(token)

    path = _asset_path(package_root, ref_name(token))
    ext = path.suffix.lower()
    if ext not in IMAGE_EXTENSIONS | RICH_TEXT_EXTENSIONS | TEXT_EXTENSIONS:
        return None

    try:
        data = path.read_bytes()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
        raise ResourceNotFound(f"Asset not found: {path}") from exc

    if ext in IMAGE_EXTENSIONS:
        return ImageRef(token=token, data=data)
    if ext in RICH_TEXT_EXTENSIONS:
        return RichText(data)
    return Text(data.decode("utf-8", errors="replace"))


def resolve_face(token: str, package_root: Path) -> FaceContent | None:
    """Resolve a face token to content, or None if it cannot be resolved."""
    try:
        return load_face(token, package_root)
    except ResourceNotFound:
        logger.debug("Unresolved face %r in %s", token, package_root)
        return None
    except OSError:
        logger.warning("Could not read face %r in %s", token, package_root, exc_info=True)
        return None


def pair_back(front_path: Path) -> Path:
    """Return the back file matching a ``*.front.*`` file.

    Raises:
        ResourceNotFound: If the back file does not exist.
    """
    back_path = front_path.with_name(front_path.name.replace(FRONT_MARKER, BACK_MARKER))
    try:
        back_path.stat()
    except FileNotFoundError as exc:
        raise ResourceNotFound(f"No back face for {front_path.name}") from exc
    return back_path


def cards_from_folder(folder: Path, now: float) -> list[Card]:
    """Build cards from the ``*.front.*`` / ``*.back.*`` files in a folder.

    Fronts without a matching back are skipped.
    """
    cards = []
    fronts = sorted(
        p
        for p in folder.iterdir()
        if FRONT_MARKER in p.name and not p.name.startswith(".") and p.is_file()
    )
    for front_path in fronts:
        try:
            back_path = pair_back(front_path)
        except ResourceNotFound:
            logger.warning("Skipping %s: no matching back face", front_path.name)
            continue
        cards.append(
            Card(
                front=make_ref(front_path.name),
                back=make_ref(back_path.name),
                id=str(uuid.uuid5(LEGACY_CARD_NAMESPACE, front_path.name)),
                study=StudyState(
                    easiness_factor=settings.default_easiness_factor,
                    next_review_at=now,
                ),
            )
        )
    logger.info("Paired %d legacy cards in %s", len(cards), folder)
    return cards
