"""
Shared protocol definitions for typelog replay.
Defines the event, cursor and document-state types passed between the
timeline engine and its consumers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar
import logging
import math

logger = logging.getLogger(__name__)

V = TypeVar("V")


class StreamKind(Enum):
    TEXT = "text"
    CURSOR = "cursor"


class PlaybackPhase(Enum):
    """Replay playback phase."""
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"  # Reached the end, control shows "Resume"


@dataclass(frozen=True)
class Event(Generic[V]):
    """A value recorded at one instant (milliseconds)."""
    timestamp: int
    value: V

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "value": self.value}


_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


def _parse_numeric_text(text: str) -> float:
    base = _RADIX_PREFIXES.get(text[:2].lower())
    if base is None:
        return float(text)

    digits = text[2:]
    if not digits.isalnum():
        raise ValueError(f"Invalid base-{base} literal: {text!r}")
    return float(int(digits, base))


def to_finite_number(raw) -> Optional[float]:
    """
    Convert a loosely typed value to a finite number.

    Accepts ints, floats and numeric strings (surrounding whitespace allowed,
    empty string counts as 0). Strings follow the editor's number syntax:
    unsigned 0x/0o/0b integer prefixes are read, digit-group underscores
    ("1_000") and non-ASCII digits are not. Returns None for anything else.
    """
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return 0.0
        if "_" in text or not text.isascii():
            return None
        try:
            value = _parse_numeric_text(text)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if not math.isfinite(value):
        return None
    return value


@dataclass(frozen=True)
class CursorRange:
    """
    A recorded cursor/selection range, as stored in cursor records.

    The wire form is ``"start:end"``. ``end`` may be omitted (``"5"``), in
    which case it equals ``start``.
    """
    start: int
    end: int

    @classmethod
    def parse(cls, raw) -> "CursorRange":
        """
        Parse a ``"start:end"`` record.

        Unparseable start falls back to 0; a missing or unparseable end falls
        back to start. Never raises.
        """
        parts = str(raw).split(":")

        start = to_finite_number(parts[0])
        if start is None:
            logger.debug(f"Malformed cursor start in {raw!r}, using 0")
            start = 0.0

        end = to_finite_number(parts[1]) if len(parts) > 1 else None
        if end is None:
            end = start

        return cls(start=int(start), end=int(end))

    def format(self) -> str:
        return f"{self.start}:{self.end}"

    def clamped(self, length: int) -> "CursorRange":
        """Clamp both bounds to [0, length] and order them."""
        start = min(max(self.start, 0), length)
        end = min(max(self.end, 0), length)
        if start > end:
            start, end = end, start
        return CursorRange(start=start, end=end)


@dataclass(frozen=True)
class DocumentState:
    """Reconstructed document state at one instant."""
    text: str = ""
    selection_start: int = 0
    selection_end: int = 0

    @property
    def text_length(self) -> int:
        return len(self.text)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "selection_start": self.selection_start,
            "selection_end": self.selection_end,
        }


EMPTY_STATE = DocumentState()


@dataclass(frozen=True)
class TimelineBounds:
    """Extent of the logged window in absolute milliseconds."""
    t0: int
    t_end: int
    duration: int

    def to_dict(self) -> dict:
        return {"t0": self.t0, "t_end": self.t_end, "duration": self.duration}


@dataclass(frozen=True)
class Timeline:
    """Everything a chart consumer needs once per log (re)build."""
    text_events: List[Event[str]]
    cursor_events: List[Event[str]]
    bounds: Optional[TimelineBounds]

    @property
    def is_empty(self) -> bool:
        return self.bounds is None


@dataclass(frozen=True)
class ReplayFrame:
    """A published replay sample."""
    absolute_time: float
    virtual_time: float
    duration: int
    phase: PlaybackPhase
    state: DocumentState = field(default_factory=DocumentState)
    cursor_position: int = 0  # Raw recorded start offset, unclamped

    def to_dict(self) -> dict:
        return {
            "absolute_time": self.absolute_time,
            "virtual_time": self.virtual_time,
            "duration": self.duration,
            "phase": self.phase.value,
            "cursor_position": self.cursor_position,
            **self.state.to_dict(),
        }
