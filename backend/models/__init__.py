"""Domain models for flashcards and their faces."""

from backend.models.card import Card, Grade, StudyState
from backend.models.faces import FaceContent, ImageRef, RichText, Text

__all__ = ["Card", "FaceContent", "Grade", "ImageRef", "RichText", "StudyState", "Text"]
