# Engagement tracking: visits, clicks and like/dislike votes
from .engine import StatsEngine
from .errors import (
    EngagementError,
    Forbidden,
    InvalidValue,
    MalformedBody,
    MissingField,
    NotFound,
    StorageFailure,
)
from .snapshot import SnapshotStore, StatsState
