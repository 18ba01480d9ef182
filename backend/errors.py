"""Exception types raised by the deck core."""


class FlashDeckError(Exception):
    """Base class for all deck core errors."""


class InvalidGrade(FlashDeckError, ValueError):
    """A grade outside the 0-5 recall scale."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid grade {value!r}: expected an integer from 0 to 5")
        self.value = value


class ResourceNotFound(FlashDeckError, FileNotFoundError):
    """A referenced or paired asset file does not exist."""


class CorruptMetadata(FlashDeckError):
    """The package metadata file could not be read or parsed."""


class WriteFailure(FlashDeckError, OSError):
    """Persisting the package to disk failed."""


class CardNotFound(FlashDeckError, KeyError):
    """No card with the given id exists in the deck."""

    def __str__(self) -> str:
        return f"Card not found: {self.args[0]}" if self.args else "Card not found"


class DeckNotFound(FlashDeckError, LookupError):
    """No deck package with the given name exists in the catalog root."""
