import time
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def epoch_now() -> float:
    """Return the current time as epoch seconds.

    Core operations take ``now`` as an argument; this is only used at the
    edges (CLI, API) to supply it.
    """
    return time.time()


class Settings(BaseSettings):
    app_name: str = "FlashDeck"
    decks_root: Path = Path(__file__).resolve().parent.parent / "data" / "decks"
    default_easiness_factor: float = Field(default=2.5, ge=1.3)
    min_easiness_factor: float = Field(default=1.3, ge=1.3)
    metadata_filename: str = "Info.json"
    contents_dirname: str = "Contents"
    max_reviews_per_session: int = 20
    max_new_cards_per_session: int = 10
    debug: bool = False

    model_config = {"env_prefix": "FLASHDECK_", "env_file": ".env"}


settings = Settings()
