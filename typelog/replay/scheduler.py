"""
Frame scheduling for replay playback.

Playback runs on a single asyncio event loop. Each frame is one
loop.call_later() callback; cancelling its TimerHandle is synchronous, so a
cancelled frame never runs.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
import asyncio
import logging
import time

logger = logging.getLogger(__name__)

# Wall clock in milliseconds
Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class FrameScheduler(ABC):
    """Host per-frame scheduling primitive."""

    frame_interval_ms: float = 16.0

    @abstractmethod
    def schedule(self, callback: Callable[[], None]) -> Any:
        """Run callback once on the next frame. Returns a cancel handle."""
        raise NotImplementedError

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a scheduled callback. It is guaranteed not to run."""
        raise NotImplementedError


class AsyncioFrameScheduler(FrameScheduler):
    """Schedules frames on an asyncio event loop."""

    def __init__(
        self,
        frame_interval_ms: float = 16.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.frame_interval_ms = frame_interval_ms
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._get_loop().call_later(self.frame_interval_ms / 1000.0, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class FrameLoop:
    """
    Repeats a frame callback until it returns False or the loop is cancelled.

    At most one frame is pending at any time.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        on_frame: Callable[[], bool],
        clock: Clock = monotonic_ms,
    ):
        self.scheduler = scheduler
        self.clock = clock
        self._on_frame = on_frame
        self._handle = None
        self.scheduled_at: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self):
        """Schedule the next frame unless one is already pending."""
        if self._handle is not None:
            return
        self.scheduled_at = self.clock()
        self._handle = self.scheduler.schedule(self._run)

    def cancel(self):
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None

    def restart(self):
        """Drop the pending frame and schedule a fresh one."""
        self.cancel()
        self.start()

    def _run(self):
        self._handle = None
        if self._on_frame():
            self.start()
