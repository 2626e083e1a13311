from dataclasses import dataclass, asdict
from typing import Dict

from errors import InvalidConfig

TICK_SECONDS = 1.0           # wall-clock seconds per simulated second (background clock)

YELLOW_WARNING = 3           # last seconds of an active lane shown as yellow

SERVER_HOST = "0.0.0.0"
SERVER_PORT = 8000

# Green time per density tier (seconds)
LOW_GREEN = 15
MEDIUM_GREEN = 30
HIGH_GREEN = 60

DEFAULT_LANE_COUNT = 4
LANE_COUNT_CHOICES = (3, 4)
DEFAULT_HIGH_THRESHOLD = 15
DEFAULT_MEDIUM_THRESHOLD = 8

# Slider bounds of the configuration form
HIGH_THRESHOLD_RANGE = (10, 30)
MEDIUM_THRESHOLD_RANGE = (5, 15)

# Stub detector: fabricated readings per lane
STUB_MIN_VEHICLES = 3
STUB_MAX_VEHICLES = 25       # inclusive
STUB_EMERGENCY_PROBABILITY = 0.1
STUB_PROCESSING_RANGE = (1.0, 3.0)

IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi"}


@dataclass
class ThresholdConfig:
    lane_count: int = DEFAULT_LANE_COUNT
    high_threshold: int = DEFAULT_HIGH_THRESHOLD
    medium_threshold: int = DEFAULT_MEDIUM_THRESHOLD

    @classmethod
    def default(cls) -> "ThresholdConfig":
        return cls()

    def validate(self) -> "ThresholdConfig":
        if self.lane_count not in LANE_COUNT_CHOICES:
            raise InvalidConfig(
                f"lane_count must be one of {LANE_COUNT_CHOICES}, got {self.lane_count}"
            )
        if self.medium_threshold >= self.high_threshold:
            raise InvalidConfig(
                f"medium_threshold ({self.medium_threshold}) must be below "
                f"high_threshold ({self.high_threshold})"
            )
        return self

    def snapshot(self) -> Dict:
        return asdict(self)
