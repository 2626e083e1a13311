# simulator.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence

from config import TICK_SECONDS, YELLOW_WARNING
from errors import EmptyLaneList, InvalidEvent
from metrics import PlaybackMetrics
from optimizer import Lane

logger = logging.getLogger(__name__)

EVENTS = ("start", "pause", "reset", "tick")


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


class Signal(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


@dataclass(frozen=True)
class SequencerState:
    # None while idle or complete; otherwise the one lane holding green/yellow
    current_lane_index: Optional[int] = None
    time_remaining: int = 0
    phase: Phase = Phase.IDLE


def initial_state(lanes: Sequence[Lane]) -> SequencerState:
    return SequencerState(
        current_lane_index=None,
        time_remaining=lanes[0].allocated_time if lanes else 0,
        phase=Phase.IDLE,
    )


def transition(lanes: Sequence[Lane], state: SequencerState, event: str) -> SequencerState:
    """
    Apply one event to a playback state and return the next state.

    - reset: back to idle from anywhere, countdown preloaded with lane 0.
    - start: idle -> running on lane 0, paused -> running from where it stopped.
    - pause: running -> paused, position kept.
    - tick: count down one second; at zero move to the next lane, or finish
      after the last one.

    Events that do not apply to the current phase return the state unchanged.
    Starting with no lanes raises EmptyLaneList.
    """
    if event not in EVENTS:
        raise InvalidEvent(f"unknown event {event!r}, expected one of {EVENTS}")

    if event == "reset":
        return initial_state(lanes)

    if state.phase == Phase.COMPLETE:
        return state

    if event == "start":
        if state.phase == Phase.IDLE:
            if not lanes:
                raise EmptyLaneList("cannot start playback without lanes")
            return SequencerState(0, lanes[0].allocated_time, Phase.RUNNING)
        if state.phase == Phase.PAUSED:
            return replace(state, phase=Phase.RUNNING)
        return state

    if event == "pause":
        if state.phase == Phase.RUNNING:
            return replace(state, phase=Phase.PAUSED)
        return state

    # tick
    if state.phase != Phase.RUNNING:
        return state

    remaining = state.time_remaining - 1
    if remaining > 0:
        return replace(state, time_remaining=remaining)

    idx = state.current_lane_index
    if idx < len(lanes) - 1:
        return SequencerState(idx + 1, lanes[idx + 1].allocated_time, Phase.RUNNING)
    return SequencerState(None, 0, Phase.COMPLETE)


def signal_for(state: SequencerState, lane_index: int) -> Signal:
    if state.current_lane_index != lane_index or state.phase not in (Phase.RUNNING, Phase.PAUSED):
        return Signal.RED
    if state.time_remaining > YELLOW_WARNING:
        return Signal.GREEN
    if state.time_remaining > 0:
        return Signal.YELLOW
    return Signal.RED


def signal_colors(state: SequencerState, lane_count: int) -> List[Signal]:
    return [signal_for(state, i) for i in range(lane_count)]


class PlaybackSequencer:
    """
    Owns the playback state of one session.

    Every transition goes through the lock, so ticks from a clock thread and
    control calls from request handlers are applied one at a time. Each start,
    pause and reset bumps `generation`; a tick stamped with an older generation
    belongs to a timer that has since been cancelled and is dropped.
    """

    def __init__(self, lanes: Sequence[Lane]):
        self.lanes: List[Lane] = list(lanes)
        self.state = initial_state(self.lanes)
        self.generation = 0
        self.metrics = PlaybackMetrics()
        self._lock = threading.RLock()

    def start(self) -> int:
        """Start or resume playback. Returns the generation a clock should stamp its ticks with."""
        with self._lock:
            before = self.state
            self.state = transition(self.lanes, before, "start")
            if self.state != before:
                self.generation += 1
                if before.phase == Phase.IDLE:
                    logger.info("playback started: %d lanes", len(self.lanes))
                else:
                    logger.info("playback resumed at lane %d, %ds left",
                                self.lanes[self.state.current_lane_index].id, self.state.time_remaining)
            return self.generation

    def pause(self) -> SequencerState:
        with self._lock:
            before = self.state
            self.state = transition(self.lanes, before, "pause")
            if self.state != before:
                self.generation += 1
                logger.info("playback paused at %ds", self.state.time_remaining)
            return self.state

    def reset(self) -> SequencerState:
        with self._lock:
            self.state = transition(self.lanes, self.state, "reset")
            self.generation += 1
            self.metrics = PlaybackMetrics()
            logger.info("playback reset")
            return self.state

    def tick(self, generation: Optional[int] = None) -> SequencerState:
        with self._lock:
            if generation is not None and generation != self.generation:
                logger.debug("dropping stale tick (generation %d, current %d)", generation, self.generation)
                return self.state

            before = self.state
            self.state = transition(self.lanes, before, "tick")
            if before.phase != Phase.RUNNING:
                return self.state

            lane = self.lanes[before.current_lane_index]
            self.metrics.record_tick(self.metrics.elapsed + 1, lane.id, before.time_remaining - 1)

            if self.state.current_lane_index != before.current_lane_index:
                self.metrics.record_served(lane.id)
                if self.state.phase == Phase.COMPLETE:
                    logger.info("playback complete after %ds", self.metrics.elapsed)
                else:
                    logger.info("lane %d served, lane %d now active",
                                lane.id, self.lanes[self.state.current_lane_index].id)
            return self.state

    def signals(self) -> List[Signal]:
        with self._lock:
            return signal_colors(self.state, len(self.lanes))

    def snapshot(self) -> Dict:
        with self._lock:
            state = self.state
            active = state.current_lane_index
            return {
                "phase": state.phase.value,
                "current_lane_index": active,
                "active_lane_id": self.lanes[active].id if active is not None else None,
                "time_remaining": state.time_remaining,
                "generation": self.generation,
                "signals": [s.value for s in signal_colors(state, len(self.lanes))],
            }


class PlaybackClock:
    """
    Background ticker: one tick per `tick_seconds`, bound to a single sequencer generation.

    start/stop/close are serialized by their own lock, so at most one ticking
    thread exists per clock. A closed clock never starts again.
    """

    def __init__(self, sequencer: PlaybackSequencer, tick_seconds: float = TICK_SECONDS):
        self.sequencer = sequencer
        self.tick_seconds = tick_seconds
        self.closed = False
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._generation: Optional[int] = None
        self.thread_name = f"playback-clock-{id(self):x}"

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self, generation: int) -> bool:
        with self._lock:
            if self.closed:
                return False
            if self._generation == generation and self.running:
                return True
            self._stop_locked()
            self._stop_event = threading.Event()
            self._generation = generation
            self._thread = threading.Thread(
                target=self._run, args=(generation, self._stop_event),
                name=self.thread_name, daemon=True,
            )
            self._thread.start()
            return True

    def stop(self):
        with self._lock:
            self._stop_locked()

    def close(self):
        with self._lock:
            self.closed = True
            self._stop_locked()

    def _stop_locked(self):
        self._stop_event.set()
        thread, self._thread = self._thread, None
        self._generation = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5.0)

    def _run(self, generation: int, stop_event: threading.Event):
        while not stop_event.wait(self.tick_seconds):
            state = self.sequencer.tick(generation)
            if state.phase != Phase.RUNNING or self.sequencer.generation != generation:
                break
