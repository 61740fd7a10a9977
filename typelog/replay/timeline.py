"""
Timeline index.

Answers "latest event at or before T" for one ordered stream and derives the
bounds of the logged window across both streams.
"""

from bisect import bisect_right
from typing import List, Optional, Sequence

from typelog.shared.protocol import Event, TimelineBounds
from typelog.shared.errors import NoEventsError


def timeline_bounds(stream_a: Sequence[Event], stream_b: Sequence[Event]) -> TimelineBounds:
    """
    Compute (t0, t_end, duration) over both streams.

    Streams are ascending, so only their endpoints matter. Duration is never
    below 1 so ratios against it stay defined.

    Raises:
        NoEventsError: both streams are empty
    """
    firsts = [s[0].timestamp for s in (stream_a, stream_b) if s]
    lasts = [s[-1].timestamp for s in (stream_a, stream_b) if s]
    if not firsts:
        raise NoEventsError()

    t0 = min(firsts)
    t_end = max(lasts)
    return TimelineBounds(t0=t0, t_end=t_end, duration=max(1, t_end - t0))


class TimelineIndex:
    """Binary-search index over one ascending event stream."""

    def __init__(self, events: Sequence[Event]):
        self.events: List[Event] = list(events)
        self._timestamps = [e.timestamp for e in self.events]

    def latest_at_or_before(self, t: float) -> Optional[Event]:
        """
        Event with the greatest timestamp <= t, or None if t precedes
        every event (or the stream is empty).
        """
        i = bisect_right(self._timestamps, t)
        if i == 0:
            return None
        return self.events[i - 1]

    @property
    def first(self) -> Optional[Event]:
        return self.events[0] if self.events else None

    @property
    def last(self) -> Optional[Event]:
        return self.events[-1] if self.events else None

    def __len__(self) -> int:
        return len(self.events)

    def __bool__(self) -> bool:
        return bool(self.events)
