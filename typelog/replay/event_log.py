"""
Event log normalisation.

Turns the raw record mappings kept for a document (timestamp key -> value)
into ordered event streams.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional
import logging

from typelog.shared.protocol import Event, StreamKind, to_finite_number

logger = logging.getLogger(__name__)


def normalize(records: Optional[Mapping[Any, Any]]) -> List[Event]:
    """
    Normalise a raw record mapping into an ascending event stream.

    Keys are converted to numbers; keys that are not finite numbers are
    dropped. Keys are unique, so the result has no duplicate timestamps
    unless two distinct keys spell the same number ("100" and 100), in
    which case the later entry in mapping order wins.
    """
    by_timestamp = {}
    dropped = 0

    for key, value in (records or {}).items():
        ts = to_finite_number(key)
        if ts is None:
            dropped += 1
            continue
        by_timestamp[int(ts) if ts.is_integer() else ts] = value

    if dropped:
        logger.debug(f"Dropped {dropped} records with non-numeric timestamps")

    return [Event(timestamp=ts, value=by_timestamp[ts]) for ts in sorted(by_timestamp)]


@dataclass
class EventLog:
    """The two normalised streams recorded for one document."""
    text_events: List[Event[str]] = field(default_factory=list)
    cursor_events: List[Event[str]] = field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        text_records: Optional[Mapping[Any, Any]],
        cursor_records: Optional[Mapping[Any, Any]],
    ) -> "EventLog":
        text_events = [
            Event(timestamp=e.timestamp, value="" if e.value is None else str(e.value))
            for e in normalize(text_records)
        ]
        cursor_events = [
            Event(timestamp=e.timestamp, value=str(e.value))
            for e in normalize(cursor_records)
        ]
        return cls(text_events=text_events, cursor_events=cursor_events)

    def stream(self, kind: StreamKind) -> List[Event[str]]:
        if kind == StreamKind.TEXT:
            return self.text_events
        return self.cursor_events

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to replay."""
        return not self.text_events and not self.cursor_events

    def __len__(self) -> int:
        return len(self.text_events) + len(self.cursor_events)
