"""
Replay session for one viewed document.

Owns the event log, both timeline indexes, the projector and the playback
controller. A new session is built whenever the viewed document or its logs
change; the previous one is closed.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging

from typelog.documents.models import Document
from typelog.shared.metrics import MetricsRegistry, ReplayMetricsCollector
from typelog.shared.protocol import Timeline, TimelineBounds
from .event_log import EventLog
from .listeners import ReplayListener
from .playback import PlaybackController
from .projector import StateProjector
from .scheduler import Clock, FrameScheduler, monotonic_ms
from .snapshot import EditableSurface, SnapshotSlot
from .timeline import TimelineIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """A row of the text log table."""
    timestamp: float
    text: str

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "text": self.text}


class ReplaySession:
    """All replay state for one document."""

    def __init__(
        self,
        document: Document,
        scheduler: FrameScheduler,
        clock: Clock = monotonic_ms,
        surface: Optional[EditableSurface] = None,
        view: Optional[EditableSurface] = None,
        speed: float = 1.0,
        default_speed: float = 1.0,
        registry: Optional[MetricsRegistry] = None,
    ):
        self.document = document
        self.event_log = EventLog.from_records(document.text_records, document.cursor_records)
        self.text_index = TimelineIndex(self.event_log.text_events)
        self.cursor_index = TimelineIndex(self.event_log.cursor_events)
        self.projector = StateProjector(self.text_index, self.cursor_index)

        self.controller = PlaybackController(
            projector=self.projector,
            scheduler=scheduler,
            clock=clock,
            snapshots=SnapshotSlot(view, surface),
            speed=speed,
            default_speed=default_speed,
            metrics=ReplayMetricsCollector(document.id, registry),
        )

        logger.info(
            f"Built replay session for {document.id}: "
            f"{len(self.text_index)} text events, {len(self.cursor_index)} cursor events"
        )

    @property
    def bounds(self) -> Optional[TimelineBounds]:
        return self.controller.bounds

    @property
    def has_events(self) -> bool:
        return self.bounds is not None

    @property
    def timeline(self) -> Timeline:
        return Timeline(
            text_events=list(self.event_log.text_events),
            cursor_events=list(self.event_log.cursor_events),
            bounds=self.bounds,
        )

    def attach(self, listener: ReplayListener):
        """Subscribe a listener and hand it the timeline."""
        self.controller.add_listener(listener)
        listener.on_timeline(self.timeline)

    def detach(self, listener: ReplayListener):
        self.controller.remove_listener(listener)

    def log_entries(self) -> List[LogEntry]:
        """Text log rows in time order."""
        return [LogEntry(timestamp=e.timestamp, text=e.value) for e in self.event_log.text_events]

    def close(self):
        """Stop any replay (restoring the surface) and drop listeners."""
        self.controller.stop()
        self.controller.listeners.clear()
