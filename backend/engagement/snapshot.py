"""
Snapshot Store – the whole counter state as one JSON document.

The file is read once at startup and fully rewritten after every mutation
(write to a temp file, then atomic replace). Keys on disk are camelCase:

    {
      "totalVisits": 12,
      "todayVisits": 3,
      "todayDate": "2024-05-01",
      "gameClicks": {"g1": 4},
      "gameVotes": {"g1": {"likes": 1, "dislikes": 0}},
      "votesByVisitor": {"<visitorId>": {"g1": "like"}},
      "uniqueVisitorsSet": ["<visitorId>", ...]
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel

from .errors import StorageFailure

logger = logging.getLogger("uvicorn.error")

VoteValue = Literal["like", "dislike"]

DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent / "stats-data.json"


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        # null on disk means "use the default", same as a missing key
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class GameTally(_SnapshotModel):
    likes: int = Field(default=0, ge=0)
    dislikes: int = Field(default=0, ge=0)


class StatsState(_SnapshotModel):
    """In-memory form of the snapshot file."""

    total_visits: int = 0
    today_visits: int = 0
    today_date: Optional[str] = None
    game_clicks: dict[str, int] = Field(default_factory=dict)
    game_votes: dict[str, GameTally] = Field(default_factory=dict)
    votes_by_visitor: dict[str, dict[str, VoteValue]] = Field(default_factory=dict)
    unique_visitors_set: set[str] = Field(default_factory=set)

    @field_serializer("unique_visitors_set")
    def _serialize_visitors(self, visitors: set[str]) -> list[str]:
        return sorted(visitors)

    def to_snapshot(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SnapshotStore:
    """Loads and saves the full StatsState at a fixed path."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_DATA_PATH

    def load(self) -> StatsState:
        """Return the stored state, or an empty one if the file is unusable.

        Any failure (missing file, permissions, bad JSON, schema mismatch)
        falls back to defaults; the existing file is left untouched until the
        next save overwrites it.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
            return StatsState.model_validate(json.loads(raw))
        except FileNotFoundError:
            logger.info(f"[snapshot] no snapshot at {self.path}, starting empty")
        except Exception as exc:
            logger.warning(f"[snapshot] could not load {self.path}, starting empty: {exc}")
        return StatsState()

    def save(self, state: StatsState) -> None:
        """Overwrite the snapshot file with ``state``. Raises StorageFailure."""
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(state.to_snapshot(), f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as exc:
            logger.error(f"[snapshot] write to {self.path} failed: {exc}")
            raise StorageFailure(f"Failed to persist stats: {exc}") from exc
