from .protocol import (
    StreamKind,
    PlaybackPhase,
    Event,
    CursorRange,
    DocumentState,
    EMPTY_STATE,
    TimelineBounds,
    Timeline,
    ReplayFrame,
    to_finite_number,
)

__all__ = [
    "StreamKind",
    "PlaybackPhase",
    "Event",
    "CursorRange",
    "DocumentState",
    "EMPTY_STATE",
    "TimelineBounds",
    "Timeline",
    "ReplayFrame",
    "to_finite_number",
]
