"""
Shared fixtures for integration tests.
"""

import pytest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from typelog.api import create_app
from typelog.replay import ReplayCoordinator


@pytest.fixture
def coordinator(documents, scheduler, clock, surface, registry):
    return ReplayCoordinator(
        documents=documents,
        scheduler=scheduler,
        clock=clock,
        surface=surface,
        speeds=[0.5, 1.0, 2.0, 4.0],
        registry=registry,
    )


@pytest.fixture
def app(coordinator, registry):
    return create_app(coordinator, registry=registry)


@pytest.fixture
def client(app):
    """Test client with the app lifespan running."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def mock_websocket():
    """Create a mock WebSocket connection."""
    ws = AsyncMock()
    ws.send_json = AsyncMock()
    ws.receive_text = AsyncMock()
    return ws
