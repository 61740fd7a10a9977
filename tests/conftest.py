"""
Shared test fixtures for typelog tests.
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typelog.documents import Document, InMemoryDocumentSource
from typelog.replay import FrameScheduler, ReplayListener
from typelog.shared.metrics import MetricsRegistry


class FakeClock:
    """Wall clock in milliseconds that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


class ManualScheduler(FrameScheduler):
    """Frame scheduler driven by the test."""

    frame_interval_ms = 16.0

    def __init__(self):
        self.pending = []
        self._next_id = 0

    def schedule(self, callback):
        self._next_id += 1
        handle = (self._next_id, callback)
        self.pending.append(handle)
        return handle

    def cancel(self, handle):
        if handle in self.pending:
            self.pending.remove(handle)

    def run_next(self) -> bool:
        """Run the oldest pending frame. False if nothing was pending."""
        if not self.pending:
            return False
        _, callback = self.pending.pop(0)
        callback()
        return True


class RecordingListener(ReplayListener):
    """Keeps everything it is told."""

    def __init__(self):
        self.timelines = []
        self.frames = []
        self.phases = []

    def on_timeline(self, timeline):
        self.timelines.append(timeline)

    def on_frame(self, frame):
        self.frames.append(frame)

    def on_phase_change(self, phase):
        self.phases.append(phase)


class FakeSurface:
    """Editable surface stand-in."""

    def __init__(self, text="live body", title="Live title", selection_start=3, selection_end=5):
        self.text = text
        self.title = title
        self.selection_start = selection_start
        self.selection_end = selection_end
        self.renders = 0

    def render(self):
        self.renders += 1


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def recorder():
    return RecordingListener()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def registry():
    return MetricsRegistry()


@pytest.fixture
def sample_text_records():
    """Typing "hello" with a pause, keyed the way the editor stores them."""
    return {
        "1000": "h",
        "1100": "he",
        "1200": "hel",
        "1300": "hell",
        "2000": "hello",
    }


@pytest.fixture
def sample_cursor_records():
    return {
        "1000": "1:1",
        "1100": "2:2",
        "1200": "3:3",
        "1300": "4:4",
        "2000": "5:5",
        "2100": "0:5",
    }


@pytest.fixture
def sample_document(sample_text_records, sample_cursor_records):
    return Document(
        id="n1",
        title="Greeting",
        body="hello",
        text_records=sample_text_records,
        cursor_records=sample_cursor_records,
    )


@pytest.fixture
def empty_document():
    return Document(id="n2", title="", body="draft")


@pytest.fixture
def documents(sample_document, empty_document):
    return InMemoryDocumentSource([sample_document, empty_document], active_id="n1")
