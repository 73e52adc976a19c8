"""Visitor identity – client-asserted ids and the unique-visitor set."""

import uuid
from typing import Optional

from .snapshot import StatsState


def resolve_visitor_id(candidate: Optional[str]) -> str:
    """Return the client's id, or issue a fresh random one if it sent none."""
    if candidate:
        return candidate
    return str(uuid.uuid4())


def is_known(state: StatsState, visitor_id: str) -> bool:
    return visitor_id in state.unique_visitors_set


def register(state: StatsState, visitor_id: str) -> bool:
    """Add the visitor to the unique set. Returns True if it was new."""
    if is_known(state, visitor_id):
        return False
    state.unique_visitors_set.add(visitor_id)
    return True
