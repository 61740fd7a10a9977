# Document history replay
from .event_log import EventLog, normalize
from .timeline import TimelineIndex, timeline_bounds
from .projector import StateProjector
from .snapshot import EditableSurface, SessionSnapshot, SnapshotSlot
from .scheduler import (
    AsyncioFrameScheduler,
    FrameLoop,
    FrameScheduler,
    monotonic_ms,
)
from .listeners import (
    OverlayModel,
    OverlaySegments,
    ProgressSeries,
    ReplayListener,
    ReplayView,
    split_selection,
)
from .playback import PlaybackController, PlaybackState, parse_speed
from .controls import ControlState, format_ms
from .session import LogEntry, ReplaySession
from .coordinator import ReplayCoordinator

__all__ = [
    "EventLog",
    "normalize",
    "TimelineIndex",
    "timeline_bounds",
    "StateProjector",
    "EditableSurface",
    "SessionSnapshot",
    "SnapshotSlot",
    "AsyncioFrameScheduler",
    "FrameLoop",
    "FrameScheduler",
    "monotonic_ms",
    "OverlayModel",
    "OverlaySegments",
    "ProgressSeries",
    "ReplayListener",
    "ReplayView",
    "split_selection",
    "PlaybackController",
    "PlaybackState",
    "parse_speed",
    "ControlState",
    "format_ms",
    "LogEntry",
    "ReplaySession",
    "ReplayCoordinator",
]
