"""
Tests for the allocation policy: density tier and green time per lane.
"""

import pytest

from config import ThresholdConfig, LOW_GREEN, MEDIUM_GREEN, HIGH_GREEN
from detector import LaneReading
from errors import InvalidConfig
from optimizer import Density, allocate, classify


class TestClassify:

    @pytest.mark.parametrize("count", [0, 1, 5, 7])
    def test_below_medium_is_low(self, count):
        assert classify(count, False, 8, 15) == (Density.LOW, LOW_GREEN)

    @pytest.mark.parametrize("count", [8, 10, 14])
    def test_between_thresholds_is_medium(self, count):
        assert classify(count, False, 8, 15) == (Density.MEDIUM, MEDIUM_GREEN)

    @pytest.mark.parametrize("count", [15, 20, 250])
    def test_at_or_above_high_is_high(self, count):
        assert classify(count, False, 8, 15) == (Density.HIGH, HIGH_GREEN)

    @pytest.mark.parametrize("count", [0, 3, 10, 40])
    def test_emergency_overrides_count(self, count):
        assert classify(count, True, 8, 15) == (Density.HIGH, HIGH_GREEN)

    def test_green_times(self):
        assert (LOW_GREEN, MEDIUM_GREEN, HIGH_GREEN) == (15, 30, 60)

    def test_idempotent(self):
        first = classify(11, False, 8, 15)
        second = classify(11, False, 8, 15)
        assert first == second

    def test_thresholds_above_100(self):
        """Emergency still wins when the thresholds are far above any count."""
        assert classify(150, False, 120, 200) == (Density.MEDIUM, MEDIUM_GREEN)
        assert classify(5, True, 120, 200) == (Density.HIGH, HIGH_GREEN)


class TestAllocate:

    def test_reference_scenario(self, lanes):
        assert [lane.density for lane in lanes] == [Density.LOW, Density.MEDIUM, Density.HIGH, Density.HIGH]
        assert [lane.allocated_time for lane in lanes] == [15, 30, 60, 60]

    def test_ids_are_one_based_in_reading_order(self, lanes):
        assert [lane.id for lane in lanes] == [1, 2, 3, 4]

    def test_negative_count_treated_as_zero(self, thresholds):
        lane, = allocate([LaneReading(vehicle_count=-4)], thresholds)
        assert lane.vehicle_count == 0
        assert lane.density == Density.LOW

    def test_lane_snapshot(self, lanes):
        assert lanes[3].snapshot() == {
            "id": 4,
            "vehicle_count": 3,
            "has_emergency_vehicle": True,
            "density": "high",
            "allocated_time": 60,
        }


class TestThresholdConfig:

    def test_defaults(self):
        config = ThresholdConfig.default().validate()
        assert config.snapshot() == {"lane_count": 4, "high_threshold": 15, "medium_threshold": 8}

    @pytest.mark.parametrize("medium, high", [(15, 15), (20, 15)])
    def test_medium_must_be_below_high(self, medium, high):
        with pytest.raises(InvalidConfig):
            ThresholdConfig(lane_count=4, high_threshold=high, medium_threshold=medium).validate()

    @pytest.mark.parametrize("lane_count", [0, 2, 5])
    def test_lane_count_range(self, lane_count):
        with pytest.raises(InvalidConfig):
            ThresholdConfig(lane_count=lane_count).validate()
