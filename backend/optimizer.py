from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

from config import LOW_GREEN, MEDIUM_GREEN, HIGH_GREEN, ThresholdConfig


class Density(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Lane:
    id: int
    vehicle_count: int
    has_emergency_vehicle: bool
    density: Density
    allocated_time: int

    def snapshot(self) -> Dict:
        return {
            "id": self.id,
            "vehicle_count": self.vehicle_count,
            "has_emergency_vehicle": self.has_emergency_vehicle,
            "density": self.density.value,
            "allocated_time": self.allocated_time,
        }


def classify(
    vehicle_count: int,
    has_emergency_vehicle: bool,
    medium_threshold: int,
    high_threshold: int,
) -> Tuple[Density, int]:
    """
    Returns: (density, allocated_time)

    - Emergency override first: high density, full green regardless of count.
    - Else count against the high, then the medium threshold.
    - Below both thresholds the lane gets the short green.
    """
    if has_emergency_vehicle:
        return Density.HIGH, HIGH_GREEN
    if vehicle_count >= high_threshold:
        return Density.HIGH, HIGH_GREEN
    if vehicle_count >= medium_threshold:
        return Density.MEDIUM, MEDIUM_GREEN
    return Density.LOW, LOW_GREEN


def allocate(readings: Sequence, config: ThresholdConfig) -> List[Lane]:
    """Turn per-lane detector readings into Lanes; ids follow reading order, starting at 1."""
    lanes = []
    for i, reading in enumerate(readings, start=1):
        count = max(0, int(reading.vehicle_count))
        emergency = bool(reading.has_emergency_vehicle)
        density, green = classify(count, emergency, config.medium_threshold, config.high_threshold)
        lanes.append(Lane(
            id=i,
            vehicle_count=count,
            has_emergency_vehicle=emergency,
            density=density,
            allocated_time=green,
        ))
    return lanes
