"""
Playback controller for document replay.

Drives a virtual clock from a wall clock and a speed multiplier, projecting
and publishing the document state once per frame.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from typelog.shared.metrics import ReplayMetricsCollector
from typelog.shared.protocol import PlaybackPhase, ReplayFrame, TimelineBounds, to_finite_number
from typelog.shared.errors import NoEventsError
from .listeners import ReplayListener
from .projector import StateProjector
from .scheduler import Clock, FrameLoop, FrameScheduler, monotonic_ms
from .snapshot import SnapshotSlot

logger = logging.getLogger(__name__)


def parse_speed(value: Any, default: float = 1.0) -> float:
    """Speed multiplier from a control value; anything not positive is the default."""
    speed = to_finite_number(value)
    if speed is None or speed <= 0:
        return default
    return speed


@dataclass
class PlaybackState:
    """
    Playback clock state.

    While PLAYING, virtual time at wall time `now` is
    virtual_time_anchor + (now - wall_clock_anchor) * speed, clamped to
    [0, duration].
    """
    phase: PlaybackPhase = PlaybackPhase.STOPPED
    virtual_time: float = 0.0
    speed: float = 1.0
    wall_clock_anchor: float = 0.0
    virtual_time_anchor: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "virtual_time": self.virtual_time,
            "speed": self.speed,
        }


class PlaybackController:
    """
    Replay state machine.

    STOPPED -> PLAYING <-> PAUSED, PLAYING -> FINISHED, and any phase back
    to STOPPED through stop(). Actions that do not apply to the current
    phase are logged no-ops.
    """

    def __init__(
        self,
        projector: StateProjector,
        scheduler: FrameScheduler,
        clock: Clock = monotonic_ms,
        snapshots: Optional[SnapshotSlot] = None,
        speed: float = 1.0,
        default_speed: float = 1.0,
        metrics: Optional[ReplayMetricsCollector] = None,
    ):
        self.projector = projector
        self.bounds: Optional[TimelineBounds] = projector.bounds()
        self.clock = clock
        self.snapshots = snapshots or SnapshotSlot()
        self.default_speed = default_speed
        self.metrics = metrics
        self.listeners: List[ReplayListener] = []

        self.state = PlaybackState(speed=parse_speed(speed, default_speed))
        self._frames = FrameLoop(scheduler, self._tick, clock)
        self._in_tick = False

    # ==================== Properties ====================

    @property
    def phase(self) -> PlaybackPhase:
        return self.state.phase

    @property
    def virtual_time(self) -> float:
        return self.state.virtual_time

    @property
    def speed(self) -> float:
        return self.state.speed

    @property
    def t0(self) -> int:
        return self.bounds.t0 if self.bounds else 0

    @property
    def duration(self) -> int:
        return self.bounds.duration if self.bounds else 0

    @property
    def position(self) -> int:
        """Virtual time as shown on the position slider."""
        return int(self.state.virtual_time + 0.5)

    @property
    def active(self) -> bool:
        """A replay is in progress (editing controls are locked)."""
        return self.state.phase != PlaybackPhase.STOPPED

    @property
    def tick_pending(self) -> bool:
        return self._frames.pending

    def add_listener(self, listener: ReplayListener):
        self.listeners.append(listener)

    def remove_listener(self, listener: ReplayListener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    # ==================== Actions ====================

    def start(self) -> bool:
        """
        Start a replay from the beginning of the timeline.

        Raises:
            NoEventsError: both logs are empty; the phase stays STOPPED
        """
        if self.bounds is None:
            if self.metrics:
                self.metrics.record_no_events()
            raise NoEventsError()

        if self.state.phase != PlaybackPhase.STOPPED:
            logger.debug(f"Ignoring start() while {self.state.phase.value}")
            return False

        self.snapshots.capture()
        self._anchor(0.0)
        self.state.virtual_time = 0.0
        self._set_phase(PlaybackPhase.PLAYING)
        self._frames.restart()

        if self.metrics:
            self.metrics.record_replay_started()
            self.metrics.update_speed(self.state.speed)

        logger.info(
            f"Replay started: {self.duration} ms of history at {self.state.speed}x"
        )
        return True

    def pause(self) -> bool:
        """Freeze playback at the last published virtual time."""
        if self.state.phase != PlaybackPhase.PLAYING:
            logger.debug(f"Ignoring pause() while {self.state.phase.value}")
            return False

        self._frames.cancel()
        self._set_phase(PlaybackPhase.PAUSED)
        logger.info(f"Replay paused at {self.position} ms")
        return True

    def resume(self) -> bool:
        """Continue playback from the current position."""
        if self.state.phase not in (PlaybackPhase.PAUSED, PlaybackPhase.FINISHED):
            logger.debug(f"Ignoring resume() while {self.state.phase.value}")
            return False

        self._anchor(self.state.virtual_time)
        self._set_phase(PlaybackPhase.PLAYING)
        self._frames.restart()
        logger.info(f"Replay resumed at {self.position} ms")
        return True

    def seek(self, target: float) -> Optional[ReplayFrame]:
        """
        Jump to a virtual time, publishing the state there immediately.

        The phase is unchanged; a pending frame is superseded.
        """
        if self._in_tick:
            logger.debug("Ignoring seek() issued from inside a frame")
            return None
        if self.bounds is None:
            logger.debug("Ignoring seek() without events")
            return None

        value = to_finite_number(target)
        if value is None:
            logger.debug(f"Ignoring seek() to non-numeric target {target!r}")
            return None

        current = min(max(value, 0.0), float(self.duration))
        frame = self._publish(self.t0 + current, current)
        self._anchor(current)

        if self.state.phase == PlaybackPhase.PLAYING:
            self._frames.restart()
        if self.metrics:
            self.metrics.record_seek()
        return frame

    def seek_to_timestamp(self, timestamp: float, should_play: bool = False) -> Optional[ReplayFrame]:
        """
        Jump to an absolute timestamp, e.g. a row of the log table.

        Timestamps before the logged window show the empty pre-history
        document with the position at 0. With should_play the replay starts
        playing from there.
        """
        if self._in_tick or self.bounds is None:
            return None

        ts = to_finite_number(timestamp)
        if ts is None:
            return None

        starting = should_play and self.state.phase == PlaybackPhase.STOPPED
        if starting:
            self.snapshots.capture()

        raw = ts - self.t0
        current = min(max(raw, 0.0), float(self.duration))
        if raw < 0:
            frame = self._publish(self.t0 - 1, 0.0)
        else:
            frame = self._publish(self.t0 + current, current)
        self._anchor(current)

        if self.metrics:
            self.metrics.record_seek()

        if should_play:
            if starting and self.metrics:
                self.metrics.record_replay_started()
            if self.state.phase != PlaybackPhase.PLAYING:
                self._set_phase(PlaybackPhase.PLAYING)
            self._frames.restart()
        elif self.state.phase == PlaybackPhase.PLAYING:
            self._frames.restart()

        return frame

    def set_speed(self, value: Any) -> float:
        """Change the speed multiplier without a jump in virtual time."""
        speed = parse_speed(value, self.default_speed)

        if self.state.phase == PlaybackPhase.PLAYING:
            now = self.clock()
            current = self._virtual_time_at(now)
            self.state.speed = speed
            self._anchor(current, now)
        else:
            self.state.speed = speed

        if self.metrics:
            self.metrics.update_speed(speed)
        logger.debug(f"Replay speed set to {speed}x")
        return speed

    def stop(self) -> bool:
        """Cancel playback and restore the editable surface."""
        was_active = self.active
        self._frames.cancel()
        self.snapshots.restore()

        self.state.virtual_time = 0.0
        self.state.virtual_time_anchor = 0.0
        self.state.wall_clock_anchor = 0.0
        self._set_phase(PlaybackPhase.STOPPED)

        if was_active:
            logger.info("Replay stopped")
        return was_active

    # ==================== Clock ====================

    def _anchor(self, virtual_time: float, now: Optional[float] = None):
        self.state.virtual_time_anchor = virtual_time
        self.state.wall_clock_anchor = self.clock() if now is None else now

    def _virtual_time_at(self, now: float) -> float:
        elapsed = (now - self.state.wall_clock_anchor) * self.state.speed
        current = self.state.virtual_time_anchor + elapsed
        return min(max(current, 0.0), float(self.duration))

    def _tick(self) -> bool:
        """One frame. Returns True while another frame should follow."""
        if self.state.phase != PlaybackPhase.PLAYING:
            return False

        now = self.clock()
        if self.metrics and self._frames.scheduled_at is not None:
            expected = self._frames.scheduled_at + self._frames.scheduler.frame_interval_ms
            self.metrics.record_tick_lag(max(0.0, now - expected))

        current = self._virtual_time_at(now)
        self._in_tick = True
        try:
            self._publish(self.t0 + current, current)
        finally:
            self._in_tick = False

        # A listener may have paused or stopped the replay
        if self.state.phase != PlaybackPhase.PLAYING:
            return False

        if current >= self.duration:
            self._set_phase(PlaybackPhase.FINISHED)
            logger.info("Replay reached the end of the log")
            return False

        return self.state.phase == PlaybackPhase.PLAYING

    # ==================== Publishing ====================

    def _publish(self, absolute_time: float, virtual_time: float) -> ReplayFrame:
        state, cursor_position = self.projector.project_with_cursor(absolute_time)
        self.state.virtual_time = virtual_time

        frame = ReplayFrame(
            absolute_time=absolute_time,
            virtual_time=virtual_time,
            duration=self.duration,
            phase=self.state.phase,
            state=state,
            cursor_position=cursor_position,
        )

        for listener in list(self.listeners):
            try:
                listener.on_frame(frame)
            except Exception as e:
                logger.error(f"Listener error on frame: {e}")

        if self.metrics:
            self.metrics.record_frame()
        return frame

    def _set_phase(self, phase: PlaybackPhase):
        if phase == self.state.phase:
            return
        self.state.phase = phase

        for listener in list(self.listeners):
            try:
                listener.on_phase_change(phase)
            except Exception as e:
                logger.error(f"Listener error on phase change: {e}")
