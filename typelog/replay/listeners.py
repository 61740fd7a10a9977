"""
Replay listeners.

Consumers subscribe to a replay session to receive the timeline once per log
(re)build, every published frame, and phase changes. The renderers here keep
display-ready data only; drawing is left to the host.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple
import logging

from typelog.shared.protocol import (
    CursorRange,
    EMPTY_STATE,
    DocumentState,
    PlaybackPhase,
    ReplayFrame,
    Timeline,
    TimelineBounds,
)

logger = logging.getLogger(__name__)


class ReplayListener:
    """Base listener; override the hooks you need."""

    def on_timeline(self, timeline: Timeline) -> None:
        pass

    def on_frame(self, frame: ReplayFrame) -> None:
        pass

    def on_phase_change(self, phase: PlaybackPhase) -> None:
        pass


class ReplayView(ReplayListener):
    """
    Replay pane: title, text and selection being shown.

    Frames overwrite the pane; it is snapshotted on start and written back
    on stop like any other editable surface.
    """

    def __init__(self):
        self.title = ""
        self.state = EMPTY_STATE
        self.renders = 0

    def show_document(self, title: str, body: str):
        self.title = (title or "").strip() or "Untitled"
        self.state = DocumentState(text=body or "")

    def clear(self):
        self.title = ""
        self.state = EMPTY_STATE

    def on_frame(self, frame: ReplayFrame) -> None:
        self.state = frame.state

    def render(self):
        self.renders += 1

    @property
    def text(self) -> str:
        return self.state.text

    @text.setter
    def text(self, value: str):
        self.state = replace(self.state, text=value or "")

    @property
    def selection_start(self) -> int:
        return self.state.selection_start

    @selection_start.setter
    def selection_start(self, value: int):
        self.state = replace(self.state, selection_start=value)

    @property
    def selection_end(self) -> int:
        return self.state.selection_end

    @selection_end.setter
    def selection_end(self, value: int):
        self.state = replace(self.state, selection_end=value)


@dataclass(frozen=True)
class OverlaySegments:
    """Text split around the selection, plus the caret offset."""
    before: str
    selected: str
    after: str
    caret: int

    @property
    def has_selection(self) -> bool:
        return bool(self.selected)


def split_selection(text: str, start, end) -> OverlaySegments:
    """Split text around a selection, clamping and ordering the bounds."""
    selection = CursorRange(
        start=start if isinstance(start, int) else 0,
        end=end if isinstance(end, int) else (start if isinstance(start, int) else 0),
    ).clamped(len(text))

    return OverlaySegments(
        before=text[:selection.start],
        selected=text[selection.start:selection.end],
        after=text[selection.end:],
        caret=selection.end,
    )


class OverlayModel(ReplayListener):
    """
    Caret and selection overlay data.

    The overlay is visible only while replay is active; stopping hides it.
    """

    def __init__(self):
        self.segments: Optional[OverlaySegments] = None
        self.visible = False

    def update(self, text: str, start: int, end: int):
        self.segments = split_selection(text, start, end)

    def on_frame(self, frame: ReplayFrame) -> None:
        self.visible = True
        self.update(frame.state.text, frame.state.selection_start, frame.state.selection_end)

    def on_phase_change(self, phase: PlaybackPhase) -> None:
        if phase == PlaybackPhase.STOPPED:
            self.visible = False


Point = Tuple[float, int]


@dataclass
class ProgressSeries(ReplayListener):
    """
    Progress chart data in timestamp coordinates.

    Two series (text length and cursor start over time) plus a "now"
    marker that follows the replay.
    """
    text_points: List[Point] = field(default_factory=list)
    cursor_points: List[Point] = field(default_factory=list)
    bounds: Optional[TimelineBounds] = None
    max_value: int = 1
    now: Optional[Tuple[float, int, int]] = None

    def on_timeline(self, timeline: Timeline) -> None:
        if timeline.is_empty:
            self.clear()
            return

        self.bounds = timeline.bounds
        self.text_points = [(e.timestamp, len(e.value)) for e in timeline.text_events]
        self.cursor_points = [
            (e.timestamp, CursorRange.parse(e.value).start) for e in timeline.cursor_events
        ]
        self.max_value = max(
            [1] + [v for _, v in self.text_points] + [v for _, v in self.cursor_points]
        )
        self.update_cursor(self.bounds.t0, 0, 0)

    def on_frame(self, frame: ReplayFrame) -> None:
        self.update_cursor(frame.absolute_time, frame.state.text_length, frame.cursor_position)

    def update_cursor(self, absolute_time: float, text_length: int, cursor_position: int):
        """Move the "now" marker, clamped to the logged window."""
        if self.bounds is None:
            return
        clamped = min(max(absolute_time, self.bounds.t0), self.bounds.t_end)
        self.now = (clamped, text_length, cursor_position)

    def progress(self) -> float:
        """Position of the "now" marker as a 0-1 fraction."""
        if self.bounds is None or self.now is None:
            return 0.0
        return (self.now[0] - self.bounds.t0) / self.bounds.duration

    def clear(self):
        self.text_points = []
        self.cursor_points = []
        self.bounds = None
        self.max_value = 1
        self.now = None

    def to_dict(self) -> dict:
        return {
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "max_value": self.max_value,
            "text": [list(p) for p in self.text_points],
            "cursor": [list(p) for p in self.cursor_points],
            "now": list(self.now) if self.now else None,
        }
