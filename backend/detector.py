# detector.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import numpy as np

from config import (
    STUB_MIN_VEHICLES,
    STUB_MAX_VEHICLES,
    STUB_EMERGENCY_PROBABILITY,
    STUB_PROCESSING_RANGE,
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
)
from errors import UnsupportedMedia

logger = logging.getLogger(__name__)


@dataclass
class LaneReading:
    vehicle_count: int
    has_emergency_vehicle: bool = False


@dataclass
class AnalysisResult:
    readings: List[LaneReading]
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    processing_time: float = 0.0    # seconds

    def snapshot(self) -> Dict:
        return {
            "timestamp": self.timestamp,
            "processing_time": self.processing_time,
            "readings": [
                {"vehicle_count": r.vehicle_count, "has_emergency_vehicle": r.has_emergency_vehicle}
                for r in self.readings
            ],
        }


def detect_media_kind(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """
    Returns "image" or "video" for an accepted upload.

    The content type wins when the client sent one; otherwise the file
    extension decides.
    """
    ctype = (content_type or "").lower()
    if ctype.startswith("image/"):
        return "image"
    if ctype.startswith("video/"):
        return "video"

    ext = os.path.splitext(filename or "")[1].lower()
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    raise UnsupportedMedia("Please upload an image or video file.")


class StubDetector:
    """
    Stand-in for a vehicle detector. Fabricates one reading per lane from a
    seeded generator and never looks at the uploaded media.

    A real detector only has to provide the same detect() signature.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)

    def reading(self) -> LaneReading:
        count = int(self.rng.integers(STUB_MIN_VEHICLES, STUB_MAX_VEHICLES + 1))
        emergency = bool(self.rng.random() < STUB_EMERGENCY_PROBABILITY)
        return LaneReading(vehicle_count=count, has_emergency_vehicle=emergency)

    def detect(self, lane_count: int, media: Optional[bytes] = None) -> AnalysisResult:
        readings = [self.reading() for _ in range(lane_count)]
        lo, hi = STUB_PROCESSING_RANGE
        processing_time = round(float(self.rng.uniform(lo, hi)), 1)

        logger.info(
            "stub analysis: %d lanes, %d bytes of media ignored, counts=%s",
            lane_count,
            len(media or b""),
            [r.vehicle_count for r in readings],
        )
        return AnalysisResult(readings=readings, processing_time=processing_time)
