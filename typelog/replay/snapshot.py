"""
Session snapshot of the replay pane and the live editable surface.

Frames overwrite the replay pane while replay is active; the snapshot puts
the pane (and anything the host did to the live editor) back when replay
stops.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol
import logging

logger = logging.getLogger(__name__)


class EditableSurface(Protocol):
    """A text pane with a title and selection: the replay pane or the live editor."""
    text: str
    title: str
    selection_start: Optional[int]
    selection_end: Optional[int]

    def render(self) -> None:
        ...


def _is_offset(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SessionSnapshot:
    """Pre-replay state of the editable surface."""
    text: str
    title: str
    selection_start: Optional[int]
    selection_end: Optional[int]

    @classmethod
    def capture(cls, surface: EditableSurface) -> "SessionSnapshot":
        return cls(
            text=surface.text,
            title=surface.title,
            selection_start=surface.selection_start,
            selection_end=surface.selection_end,
        )

    def restore(self, surface: EditableSurface):
        """Write the captured fields back and re-render the editor."""
        surface.text = self.text
        surface.title = self.title

        if _is_offset(self.selection_start) and _is_offset(self.selection_end):
            surface.selection_start = self.selection_start
            surface.selection_end = self.selection_end

        surface.render()


class SnapshotSlot:
    """
    Holds at most one outstanding snapshot per surface.

    Surfaces are the replay pane and, when the host has one, the live
    editor. take() hands the snapshots out exactly once.
    """

    def __init__(self, *surfaces: Optional[EditableSurface]):
        self.surfaces: List[EditableSurface] = [s for s in surfaces if s is not None]
        self._snapshots: Optional[List[SessionSnapshot]] = None

    @property
    def outstanding(self) -> bool:
        return self._snapshots is not None

    def capture(self) -> Optional[List[SessionSnapshot]]:
        if not self.surfaces:
            return None
        if self._snapshots is not None:
            logger.debug("Snapshot already outstanding, keeping the original")
            return self._snapshots
        self._snapshots = [SessionSnapshot.capture(s) for s in self.surfaces]
        return self._snapshots

    def take(self) -> Optional[List[SessionSnapshot]]:
        snapshots, self._snapshots = self._snapshots, None
        return snapshots

    def restore(self) -> bool:
        """Restore and discard the outstanding snapshots, if any."""
        snapshots = self.take()
        if not snapshots:
            return False
        for surface, snapshot in zip(self.surfaces, snapshots):
            snapshot.restore(surface)
        return True
