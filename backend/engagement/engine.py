"""
Counter / vote engine.

Owns the single StatsState behind a process-wide lock. Each mutating call
works on a deep copy of the state, persists it, and only then swaps it in,
so a failed save leaves the live counters exactly as they were.

Vote reconciliation per (visitor, game):

    Unvoted  --like-->    Liked     (+1 like)
    Unvoted  --dislike--> Disliked  (+1 dislike)
    Liked    --dislike--> Disliked  (-1 like, +1 dislike)
    Disliked --like-->    Liked     (-1 dislike, +1 like)
    Liked    --like-->    Liked     (no-op, nothing persisted)
    Disliked --dislike--> Disliked  (no-op, nothing persisted)
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import InvalidValue, MissingField
from .snapshot import GameTally, SnapshotStore, StatsState
from .visitors import register, resolve_visitor_id

logger = logging.getLogger("uvicorn.error")

VOTE_VALUES = ("like", "dislike")
_COUNTER_FOR = {"like": "likes", "dislike": "dislikes"}


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class StatsEngine:
    """Visit, click and vote counters backed by a SnapshotStore."""

    def __init__(
        self,
        snapshot: SnapshotStore,
        today: Optional[Callable[[], str]] = None,
    ) -> None:
        self.snapshot = snapshot
        self._today = today or utc_today
        self._lock = threading.Lock()
        self._state = snapshot.load()

    @property
    def state(self) -> StatsState:
        return self._state

    # ── reads ────────────────────────────────────────────────────────
    def summary(self) -> dict:
        """Current counters; rolls the daily count over first if the date changed."""
        with self._lock:
            return self._summary()

    def visitor_votes(self, visitor_id: str) -> dict[str, str]:
        with self._lock:
            return dict(self._state.votes_by_visitor.get(visitor_id, {}))

    # ── mutations ────────────────────────────────────────────────────
    def record_visit(self, visitor_id: Optional[str] = None) -> dict:
        with self._lock:
            state = self._state.model_copy(deep=True)
            self._roll_over(state)
            vid = resolve_visitor_id(visitor_id)
            is_new = register(state, vid)
            state.total_visits += 1
            state.today_visits += 1
            self._commit(state)
            logger.info(
                f"[stats] visit | visitor={vid} | new={is_new} | "
                f"total={state.total_visits} | today={state.today_visits}"
            )
            return self._result(vid)

    def record_click(self, visitor_id: Optional[str], game_id: Optional[str]) -> dict:
        if not game_id:
            raise MissingField("gameId required")

        with self._lock:
            state = self._state.model_copy(deep=True)
            self._roll_over(state)
            vid = resolve_visitor_id(visitor_id)
            register(state, vid)
            state.game_clicks[game_id] = state.game_clicks.get(game_id, 0) + 1
            self._commit(state)
            logger.info(
                f"[stats] click | visitor={vid} | game={game_id} | "
                f"clicks={state.game_clicks[game_id]}"
            )
            return self._result(vid)

    def record_vote(
        self,
        visitor_id: Optional[str],
        game_id: Optional[str],
        value: Optional[str],
    ) -> dict:
        if not game_id:
            raise MissingField("gameId required")
        if value not in VOTE_VALUES:
            raise InvalidValue("value must be 'like' or 'dislike'")

        with self._lock:
            vid = resolve_visitor_id(visitor_id)
            previous = self._state.votes_by_visitor.get(vid, {}).get(game_id)
            if previous == value:
                logger.debug(f"[votes] repeat {value} | visitor={vid} | game={game_id}")
                return self._result(vid)

            state = self._state.model_copy(deep=True)
            self._roll_over(state)
            register(state, vid)
            tally = state.game_votes.setdefault(game_id, GameTally())
            if previous is not None:
                old = _COUNTER_FOR[previous]
                setattr(tally, old, max(0, getattr(tally, old) - 1))
            new = _COUNTER_FOR[value]
            setattr(tally, new, getattr(tally, new) + 1)
            state.votes_by_visitor.setdefault(vid, {})[game_id] = value
            self._commit(state)
            logger.info(
                f"[votes] {previous or 'none'} -> {value} | visitor={vid} | "
                f"game={game_id} | likes={tally.likes} | dislikes={tally.dislikes}"
            )
            return self._result(vid)

    # ── internal helpers (caller holds the lock) ─────────────────────
    def _roll_over(self, state: StatsState) -> None:
        today = self._today()
        if state.today_date != today:
            state.today_date = today
            state.today_visits = 0

    def _commit(self, state: StatsState) -> None:
        # save raises StorageFailure before the swap, live state stays intact
        self.snapshot.save(state)
        self._state = state

    def _summary(self) -> dict:
        state = self._state
        self._roll_over(state)
        return {
            "totalVisits": state.total_visits,
            "uniqueVisitors": len(state.unique_visitors_set),
            "todayVisits": state.today_visits,
            "gameClicks": dict(state.game_clicks),
            "gameVotes": {
                game_id: tally.model_dump() for game_id, tally in state.game_votes.items()
            },
        }

    def _result(self, visitor_id: str) -> dict:
        return {
            "visitorId": visitor_id,
            "stats": self._summary(),
            "visitorVotes": dict(self._state.votes_by_visitor.get(visitor_id, {})),
        }
