"""
Integration tests for the replay HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from typelog.replay.coordinator import STATUS_NO_EVENTS, STATUS_REPLAYING


class TestReplayState:
    """Tests for GET /api/replay."""

    def test_initial_state(self, client):
        response = client.get("/api/replay")

        assert response.status_code == 200
        data = response.json()
        assert data["document"]["id"] == "n1"
        assert data["bounds"] == {"t0": 1000, "t_end": 2100, "duration": 1100}
        assert data["controls"]["phase"] == "stopped"
        assert data["controls"]["start_enabled"] is True
        assert data["controls"]["speeds"] == [0.5, 1.0, 2.0, 4.0]
        assert data["view"]["title"] == "Greeting"
        assert data["view"]["text"] == "hello"


class TestReplayControls:
    """Tests for the replay control endpoints."""

    def test_start_pause_resume_stop(self, client, surface):
        response = client.post("/api/replay/start")
        assert response.status_code == 200
        assert response.json()["changed"] is True
        assert response.json()["status"] == STATUS_REPLAYING
        assert response.json()["controls"]["editing_locked"] is True

        response = client.post("/api/replay/pause")
        assert response.json()["controls"]["pause_label"] == "Resume"

        response = client.post("/api/replay/resume")
        assert response.json()["controls"]["phase"] == "playing"

        response = client.post("/api/replay/toggle")
        assert response.json()["controls"]["phase"] == "paused"

        surface.text = "edited"
        response = client.post("/api/replay/stop")
        assert response.json()["changed"] is True
        assert response.json()["controls"]["phase"] == "stopped"
        assert surface.text == "live body"

    def test_stop_restores_replay_view(self, client):
        client.post("/api/replay/start")
        response = client.post("/api/replay/seek", json={"virtual_time": 150})
        assert response.json()["view"]["text"] == "he"

        response = client.post("/api/replay/stop")

        view = response.json()["view"]
        assert view["title"] == "Greeting"
        assert view["text"] == "hello"
        assert (view["selection_start"], view["selection_end"]) == (0, 0)

    def test_second_start_reports_no_change(self, client):
        client.post("/api/replay/start")
        response = client.post("/api/replay/start")

        assert response.status_code == 200
        assert response.json()["changed"] is False

    def test_start_without_events(self, client):
        client.post("/api/documents/n2/select")

        response = client.post("/api/replay/start")

        assert response.status_code == 409
        assert response.json()["detail"] == STATUS_NO_EVENTS

    def test_seek_by_virtual_time(self, client):
        response = client.post("/api/replay/seek", json={"virtual_time": 500})

        assert response.status_code == 200
        frame = response.json()["frame"]
        assert frame["absolute_time"] == 1500
        assert frame["text"] == "hell"
        assert frame["selection_start"] == 4

    def test_seek_by_timestamp_and_play(self, client):
        response = client.post("/api/replay/seek", json={"timestamp": 1200, "play": True})

        data = response.json()
        assert data["frame"]["text"] == "hel"
        assert data["controls"]["phase"] == "playing"
        assert data["controls"]["position"] == 200

    def test_seek_requires_a_target(self, client):
        response = client.post("/api/replay/seek", json={})
        assert response.status_code == 422

    def test_speed(self, client):
        response = client.post("/api/replay/speed", json={"speed": "4"})
        assert response.json()["speed"] == 4.0

        response = client.post("/api/replay/speed", json={"speed": "quick"})
        assert response.json()["speed"] == 1.0

    def test_series_overlay_and_log(self, client):
        client.post("/api/replay/seek", json={"virtual_time": 550})

        series = client.get("/api/replay/series").json()
        assert series["now"] == [1550, 4, 4]
        assert series["max_value"] == 5

        overlay = client.get("/api/replay/overlay").json()
        assert overlay["before"] == "hell"
        assert overlay["caret"] == 4

        log = client.get("/api/replay/log").json()
        assert log["entries"][0] == {"timestamp": 1000, "text": "h"}


class TestDocumentsApi:
    """Tests for the documents endpoints."""

    def test_list_documents(self, client):
        data = client.get("/api/documents").json()

        assert data["active"] == "n1"
        assert [d["id"] for d in data["documents"]] == ["n1", "n2"]
        assert data["documents"][1]["title"] == "Untitled"

    def test_select_document(self, client):
        response = client.post("/api/documents/n2/select")

        assert response.status_code == 200
        assert response.json()["document"]["id"] == "n2"
        assert response.json()["bounds"] is None

    def test_select_unknown_document(self, client):
        response = client.post("/api/documents/nope/select")
        assert response.status_code == 404

    def test_clear_logs(self, client):
        response = client.delete("/api/documents/n1/logs")

        assert response.status_code == 200
        assert response.json()["bounds"] is None
        assert client.post("/api/replay/start").status_code == 409

    def test_start_without_active_document(self, client, documents):
        documents.active_id = None

        response = client.post("/api/replay/start")
        assert response.status_code == 404


class TestMetricsEndpoint:
    """Tests for GET /metrics."""

    def test_metrics_after_replay(self, client):
        client.post("/api/replay/start")
        client.post("/api/replay/seek", json={"virtual_time": 100})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'typelog_replays_started_total{document="n1"} 1.0' in response.text
        assert 'typelog_seeks_total{document="n1"} 1.0' in response.text


class TestLifespan:
    """App startup and shutdown."""

    def test_shutdown_stops_replay(self, app, coordinator, surface):
        with TestClient(app) as client:
            client.post("/api/replay/start")
            surface.text = "edited"

        assert coordinator.session.controller.phase.value == "stopped"
        assert surface.text == "live body"
        assert app.state.broadcaster not in coordinator._listeners
