from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from optimizer import Density, Lane


@dataclass
class PlaybackMetrics:
    elapsed: int = 0                # simulated seconds counted down so far

    # time series for plotting
    t_series: List[int] = field(default_factory=list)
    lane_series: List[int] = field(default_factory=list)
    remaining_series: List[int] = field(default_factory=list)

    lanes_served: List[int] = field(default_factory=list)

    def record_tick(self, t: int, lane_id: int, time_remaining: int):
        self.elapsed = t
        self.t_series.append(t)
        self.lane_series.append(lane_id)
        self.remaining_series.append(time_remaining)

    def record_served(self, lane_id: int):
        self.lanes_served.append(lane_id)

    def snapshot(self, limit: int = 300) -> Dict:
        return {
            "elapsed": self.elapsed,
            "lanes_served": list(self.lanes_served),
            "series": {
                "t": self.t_series[-limit:],
                "lane": self.lane_series[-limit:],
                "remaining": self.remaining_series[-limit:],
            },
        }


def summarize(lanes: Sequence[Lane]) -> Dict:
    breakdown = {d.value: 0 for d in Density}
    for lane in lanes:
        breakdown[lane.density.value] += 1

    return {
        "lane_count": len(lanes),
        "total_vehicles": sum(lane.vehicle_count for lane in lanes),
        "emergency_vehicles": sum(1 for lane in lanes if lane.has_emergency_vehicle),
        "total_cycle_time": sum(lane.allocated_time for lane in lanes),
        "density_breakdown": breakdown,
        "series": {
            "lane": [lane.id for lane in lanes],
            "vehicle_counts": [lane.vehicle_count for lane in lanes],
            "allocated_times": [lane.allocated_time for lane in lanes],
        },
    }
