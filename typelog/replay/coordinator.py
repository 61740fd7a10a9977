"""
Replay coordinator.

Connects a document source, the live editable surface and the replay
listeners to one ReplaySession at a time, and turns control-surface actions
into controller calls with user-facing status messages.
"""

from typing import Callable, List, Optional, Sequence
import logging

from typelog.documents.source import DocumentSource
from typelog.shared.errors import NoEventsError
from typelog.shared.metrics import MetricsRegistry
from typelog.shared.protocol import PlaybackPhase, ReplayFrame, Timeline
from .controls import ControlState
from .listeners import OverlayModel, ProgressSeries, ReplayListener, ReplayView
from .playback import parse_speed
from .scheduler import Clock, FrameScheduler, monotonic_ms
from .session import LogEntry, ReplaySession
from .snapshot import EditableSurface

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]

STATUS_NO_DOCUMENT = "Pick a note to replay."
STATUS_NO_EVENTS = "No log events to replay."
STATUS_REPLAYING = "Replaying logs..."


class ReplayCoordinator:
    """
    Replay for whichever document is being viewed.

    The replay view, overlay and progress series outlive individual
    sessions; extra listeners can be added with add_listener().
    """

    def __init__(
        self,
        documents: DocumentSource,
        scheduler: FrameScheduler,
        clock: Clock = monotonic_ms,
        surface: Optional[EditableSurface] = None,
        speed: float = 1.0,
        default_speed: float = 1.0,
        speeds: Sequence[float] = (),
        registry: Optional[MetricsRegistry] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self.documents = documents
        self.scheduler = scheduler
        self.clock = clock
        self.surface = surface
        self.default_speed = default_speed
        self.speed = parse_speed(speed, default_speed)
        self.speeds = tuple(speeds)
        self.registry = registry
        self.on_status = on_status

        self.view = ReplayView()
        self.overlay = OverlayModel()
        self.series = ProgressSeries()
        self._listeners: List[ReplayListener] = [self.view, self.overlay, self.series]

        self.session: Optional[ReplaySession] = None
        self.status = ""

    # ==================== Sessions ====================

    def add_listener(self, listener: ReplayListener):
        self._listeners.append(listener)
        if self.session:
            self.session.attach(listener)
        else:
            listener.on_timeline(Timeline(text_events=[], cursor_events=[], bounds=None))

    def remove_listener(self, listener: ReplayListener):
        if listener in self._listeners:
            self._listeners.remove(listener)
        if self.session:
            self.session.detach(listener)

    def refresh(self) -> Optional[ReplaySession]:
        """
        Rebuild the session for the active document.

        Any active replay is stopped first so the surface is restored.
        """
        if self.session:
            self.session.close()
            self.session = None

        document = self.documents.get_active_document()
        if document is None:
            self.view.clear()
            self.overlay.update("", 0, 0)
            for listener in self._listeners:
                listener.on_timeline(Timeline(text_events=[], cursor_events=[], bounds=None))
            return None

        self.session = ReplaySession(
            document=document,
            scheduler=self.scheduler,
            clock=self.clock,
            surface=self.surface,
            view=self.view,
            speed=self.speed,
            default_speed=self.default_speed,
            registry=self.registry,
        )

        self.view.show_document(document.title, document.body)
        self.overlay.update(self.view.text, 0, 0)
        for listener in self._listeners:
            self.session.attach(listener)
        return self.session

    def select_document(self, document_id: str) -> Optional[ReplaySession]:
        """Switch the viewed document (stops an active replay)."""
        self.documents.select(document_id)
        return self.refresh()

    def clear_logs(self, document_id: str) -> Optional[ReplaySession]:
        """Clear a document's logs; rebuilds the session if it is the viewed one."""
        document = self.documents.get(document_id)
        document.clear_logs()
        logger.info(f"Cleared logs for document {document_id}")

        active = self.documents.get_active_document()
        if active is not None and active.id == document_id:
            return self.refresh()
        return self.session

    # ==================== Actions ====================

    def start(self) -> bool:
        """Start replaying the active document."""
        document = self.documents.get_active_document()
        if document is None:
            self._set_status(STATUS_NO_DOCUMENT)
            return False

        if self.session is None or self.session.document is not document:
            self.refresh()

        self.session.controller.set_speed(self.speed)
        try:
            started = self.session.controller.start()
        except NoEventsError as e:
            self._set_status(str(e))
            return False

        if started:
            self.view.title = document.display_title
            self._set_status(STATUS_REPLAYING)
        return started

    def pause(self) -> bool:
        return self.session.controller.pause() if self.session else False

    def resume(self) -> bool:
        if self.session is None:
            return False
        self.session.controller.set_speed(self.speed)
        return self.session.controller.resume()

    def toggle_pause(self) -> bool:
        """The Pause/Resume button."""
        if self.session and self.session.controller.phase == PlaybackPhase.PLAYING:
            return self.pause()
        return self.resume()

    def seek(self, virtual_time: float) -> Optional[ReplayFrame]:
        return self.session.controller.seek(virtual_time) if self.session else None

    def seek_to_timestamp(self, timestamp: float, should_play: bool = False) -> Optional[ReplayFrame]:
        if self.session is None:
            return None
        if should_play:
            self.session.controller.set_speed(self.speed)
        return self.session.controller.seek_to_timestamp(timestamp, should_play)

    def set_speed(self, value) -> float:
        self.speed = parse_speed(value, self.default_speed)
        if self.session:
            self.session.controller.set_speed(self.speed)
        return self.speed

    def stop(self) -> bool:
        return self.session.controller.stop() if self.session else False

    # ==================== State ====================

    def control_state(self) -> ControlState:
        if self.session is None:
            return ControlState.from_playback(PlaybackPhase.STOPPED, 0.0, 0, self.speed, self.speeds)

        controller = self.session.controller
        return ControlState.from_playback(
            controller.phase,
            controller.virtual_time,
            controller.duration,
            self.speed,
            self.speeds,
        )

    def log_entries(self) -> List[LogEntry]:
        return self.session.log_entries() if self.session else []

    def _set_status(self, message: str):
        self.status = message
        logger.info(message)
        if self.on_status:
            self.on_status(message)
