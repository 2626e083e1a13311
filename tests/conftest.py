"""
Pytest configuration and fixtures for the signal backend tests.

- Lane fixtures built through the allocation policy
- A FastAPI TestClient with the module-level server state reset per test
"""

import pytest
from fastapi.testclient import TestClient

from config import ThresholdConfig
from detector import LaneReading
from optimizer import allocate


@pytest.fixture
def thresholds():
    """Medium 8, high 15 on four lanes."""
    return ThresholdConfig(lane_count=4, high_threshold=15, medium_threshold=8)


@pytest.fixture
def readings():
    return [
        LaneReading(vehicle_count=5, has_emergency_vehicle=False),
        LaneReading(vehicle_count=10, has_emergency_vehicle=False),
        LaneReading(vehicle_count=20, has_emergency_vehicle=False),
        LaneReading(vehicle_count=3, has_emergency_vehicle=True),
    ]


@pytest.fixture
def lanes(readings, thresholds):
    """Allocations 15, 30, 60, 60."""
    return allocate(readings, thresholds)


@pytest.fixture
def short_lanes():
    """Two low-density lanes (15s each) for quick full runs."""
    return allocate(
        [LaneReading(vehicle_count=1), LaneReading(vehicle_count=2)],
        ThresholdConfig(lane_count=3, high_threshold=15, medium_threshold=8),
    )


@pytest.fixture
def client():
    """Create a test client with fresh server configuration and no session."""
    import server

    server.settings = ThresholdConfig.default()
    server.sessions.clear()
    yield TestClient(server.app)
    server.sessions.clear()


@pytest.fixture
def png_upload():
    return {"file": ("junction.png", b"\x89PNG\r\n\x1a\nfake", "image/png")}
