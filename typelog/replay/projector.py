"""
State projector.

Combines the text and cursor indexes into the document state at an
absolute time.
"""

from typing import Optional, Tuple

from typelog.shared.protocol import CursorRange, DocumentState, TimelineBounds
from .event_log import EventLog
from .timeline import TimelineIndex, timeline_bounds
from typelog.shared.errors import NoEventsError


class StateProjector:
    """
    Reconstructs (text, selection) at any absolute timestamp.

    Before the first text event the document is empty; before the first
    cursor event the caret sits at 0.
    """

    def __init__(self, text_index: TimelineIndex, cursor_index: TimelineIndex):
        self.text_index = text_index
        self.cursor_index = cursor_index

    @classmethod
    def from_event_log(cls, log: EventLog) -> "StateProjector":
        return cls(TimelineIndex(log.text_events), TimelineIndex(log.cursor_events))

    def bounds(self) -> Optional[TimelineBounds]:
        """Timeline bounds, or None when both logs are empty."""
        try:
            return timeline_bounds(self.text_index.events, self.cursor_index.events)
        except NoEventsError:
            return None

    def project(self, absolute_time: float) -> DocumentState:
        return self.project_with_cursor(absolute_time)[0]

    def project_with_cursor(self, absolute_time: float) -> Tuple[DocumentState, int]:
        """
        Project the state and also return the raw recorded cursor start.

        The raw start is what the progress chart plots; it is not clamped
        to the text.
        """
        text_event = self.text_index.latest_at_or_before(absolute_time)
        text = text_event.value if text_event else ""

        cursor_event = self.cursor_index.latest_at_or_before(absolute_time)
        if cursor_event is None:
            return DocumentState(text=text), 0

        recorded = CursorRange.parse(cursor_event.value)
        selection = recorded.clamped(len(text))
        state = DocumentState(
            text=text,
            selection_start=selection.start,
            selection_end=selection.end,
        )
        return state, recorded.start
