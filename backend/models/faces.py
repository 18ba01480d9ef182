"""Face tokens and the content variants they resolve to."""

from __future__ import annotations

from dataclasses import dataclass

REF_SCHEME = "ref://"


@dataclass(frozen=True)
class Text:
    """Plain text, either inline or read from a ``.txt`` asset."""

    text: str


@dataclass(frozen=True)
class RichText:
    """An RTF document, kept as raw bytes for the presentation layer."""

    data: bytes


@dataclass(frozen=True)
class ImageRef:
    """A PNG or JPEG asset."""

    token: str
    data: bytes


FaceContent = Text | RichText | ImageRef


def is_ref(token: str) -> bool:
    return token.startswith(REF_SCHEME)


def ref_name(token: str) -> str:
    """Return the asset filename of a ``ref://`` token."""
    return token[len(REF_SCHEME) :]


def make_ref(name: str) -> str:
    return f"{REF_SCHEME}{name}"
