"""
Tests for the replay view, overlay and progress series listeners.
"""

import pytest

from typelog.replay import (
    OverlayModel,
    ProgressSeries,
    ReplaySession,
    ReplayView,
    split_selection,
)
from typelog.shared.protocol import DocumentState, PlaybackPhase, ReplayFrame, Timeline


def make_frame(text="", start=0, end=0, absolute_time=0, cursor_position=0):
    return ReplayFrame(
        absolute_time=absolute_time,
        virtual_time=0,
        duration=1,
        phase=PlaybackPhase.PLAYING,
        state=DocumentState(text, start, end),
        cursor_position=cursor_position,
    )


class TestSplitSelection:
    """Tests for split_selection()."""

    def test_caret_only(self):
        seg = split_selection("hello", 2, 2)
        assert (seg.before, seg.selected, seg.after) == ("he", "", "llo")
        assert seg.caret == 2
        assert not seg.has_selection

    def test_selection(self):
        seg = split_selection("hello", 1, 3)
        assert (seg.before, seg.selected, seg.after) == ("h", "el", "lo")
        assert seg.caret == 3
        assert seg.has_selection

    def test_inverted_bounds_are_ordered(self):
        seg = split_selection("hello", 4, 1)
        assert (seg.before, seg.selected, seg.after) == ("h", "ell", "o")
        assert seg.caret == 4

    def test_bounds_are_clamped(self):
        seg = split_selection("hello", 2, 99)
        assert (seg.before, seg.selected, seg.after) == ("he", "llo", "")
        assert seg.caret == 5

    def test_missing_bounds(self):
        seg = split_selection("hello", None, None)
        assert seg.before == ""
        assert seg.caret == 0


class TestReplayView:
    """Tests for ReplayView."""

    def test_show_document(self):
        view = ReplayView()
        view.show_document("  Notes ", "body")

        assert view.title == "Notes"
        assert view.text == "body"

    def test_untitled(self):
        view = ReplayView()
        view.show_document("   ", "")
        assert view.title == "Untitled"

    def test_frames_replace_text(self):
        view = ReplayView()
        view.show_document("Notes", "body")
        view.on_frame(make_frame("he", 2, 2))

        assert view.state == DocumentState("he", 2, 2)

    def test_clear(self):
        view = ReplayView()
        view.show_document("Notes", "body")
        view.clear()

        assert view.title == ""
        assert view.text == ""


class TestOverlayModel:
    """Tests for OverlayModel."""

    def test_frame_shows_overlay(self):
        overlay = OverlayModel()
        assert not overlay.visible

        overlay.on_frame(make_frame("hello", 1, 3))

        assert overlay.visible
        assert overlay.segments.selected == "el"

    def test_stop_hides_overlay(self):
        overlay = OverlayModel()
        overlay.on_frame(make_frame("hello", 1, 1))

        overlay.on_phase_change(PlaybackPhase.PAUSED)
        assert overlay.visible

        overlay.on_phase_change(PlaybackPhase.STOPPED)
        assert not overlay.visible


class TestProgressSeries:
    """Tests for ProgressSeries."""

    @pytest.fixture
    def session(self, sample_document, scheduler, clock):
        return ReplaySession(sample_document, scheduler, clock=clock)

    def test_timeline_builds_series(self, session):
        series = ProgressSeries()
        session.attach(series)

        assert series.text_points == [(1000, 1), (1100, 2), (1200, 3), (1300, 4), (2000, 5)]
        assert series.cursor_points == [(1000, 1), (1100, 2), (1200, 3), (1300, 4), (2000, 5), (2100, 0)]
        assert series.max_value == 5
        assert series.now == (1000, 0, 0)
        assert series.progress() == 0.0

    def test_frames_move_now_marker(self, session):
        series = ProgressSeries()
        session.attach(series)

        session.controller.seek(550)

        assert series.now == (1550, 4, 4)
        assert series.progress() == 0.5

    def test_marker_is_clamped_to_window(self, session):
        series = ProgressSeries()
        session.attach(series)

        session.controller.seek_to_timestamp(10)

        assert series.now[0] == 1000

    def test_empty_timeline_clears(self, session):
        series = ProgressSeries()
        session.attach(series)

        series.on_timeline(Timeline(text_events=[], cursor_events=[], bounds=None))

        assert series.bounds is None
        assert series.text_points == []
        assert series.now is None
        assert series.progress() == 0.0
        assert series.to_dict()["bounds"] is None

    def test_to_dict(self, session):
        series = ProgressSeries()
        session.attach(series)

        data = series.to_dict()
        assert data["bounds"] == {"t0": 1000, "t_end": 2100, "duration": 1100}
        assert data["text"][0] == [1000, 1]
        assert data["now"] == [1000, 0, 0]
