"""Control surface state derived from the playback controller."""

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from typelog.shared.protocol import PlaybackPhase


def format_ms(ms: float) -> str:
    """Format milliseconds as mm:ss, rounding to whole seconds."""
    total_seconds = max(0, int(ms / 1000 + 0.5))
    return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"


@dataclass(frozen=True)
class ControlState:
    """What the replay controls should show."""
    phase: PlaybackPhase
    position: int
    duration: int
    speed: float
    start_enabled: bool
    pause_enabled: bool
    pause_label: str
    stop_enabled: bool
    slider_enabled: bool
    editing_locked: bool
    speeds: Tuple[float, ...] = ()

    @property
    def slider_max(self) -> int:
        # The slider needs a non-zero range even without events
        return self.duration if self.duration > 0 else 1

    @property
    def time_label(self) -> str:
        return f"{format_ms(self.position)} / {format_ms(self.duration)}"

    @classmethod
    def from_playback(
        cls,
        phase: PlaybackPhase,
        virtual_time: float,
        duration: int,
        speed: float,
        speeds: Sequence[float] = (),
    ) -> "ControlState":
        active = phase != PlaybackPhase.STOPPED
        return cls(
            phase=phase,
            position=int(virtual_time + 0.5),
            duration=duration,
            speed=speed,
            start_enabled=not active,
            pause_enabled=active,
            pause_label="Resume" if phase in (PlaybackPhase.PAUSED, PlaybackPhase.FINISHED) else "Pause",
            stop_enabled=active,
            slider_enabled=active,
            editing_locked=active,
            speeds=tuple(speeds),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "position": self.position,
            "duration": self.duration,
            "speed": self.speed,
            "speeds": list(self.speeds),
            "slider_max": self.slider_max,
            "time_label": self.time_label,
            "start_enabled": self.start_enabled,
            "pause_enabled": self.pause_enabled,
            "pause_label": self.pause_label,
            "stop_enabled": self.stop_enabled,
            "slider_enabled": self.slider_enabled,
            "editing_locked": self.editing_locked,
        }
