# session.py
from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, List, Optional

from config import TICK_SECONDS, ThresholdConfig
from detector import AnalysisResult
from errors import InvalidEvent, NoActiveSession
from metrics import summarize
from optimizer import Lane, allocate
from simulator import Phase, PlaybackClock, PlaybackSequencer

logger = logging.getLogger(__name__)

ACTIONS = ("start", "pause", "reset")


class SimulationSession:
    def __init__(
        self,
        config: ThresholdConfig,
        analysis: AnalysisResult,
        media_kind: Optional[str] = None,
        filename: Optional[str] = None,
        tick_seconds: float = TICK_SECONDS,
    ):
        self.id = uuid.uuid4().hex
        self.config = config
        self.analysis = analysis
        self.media_kind = media_kind
        self.filename = filename
        self.lanes: List[Lane] = allocate(analysis.readings, config)
        self.sequencer = PlaybackSequencer(self.lanes)
        self.clock = PlaybackClock(self.sequencer, tick_seconds=tick_seconds)
        # held across a sequencer transition and the matching clock change
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self.clock.closed

    def start(self, autoplay: bool = False):
        with self._lock:
            generation = self.sequencer.start()
            if autoplay and self.sequencer.state.phase == Phase.RUNNING:
                if not self.clock.start(generation):
                    logger.info("session %s is closed, autoplay not started", self.id)

    def pause(self):
        with self._lock:
            self.sequencer.pause()
            self.clock.stop()

    def reset(self):
        with self._lock:
            self.sequencer.reset()
            self.clock.stop()

    def close(self):
        with self._lock:
            self.clock.close()

    def snapshot(self) -> Dict:
        snap = self.sequencer.snapshot()
        snap.update({
            "session_id": self.id,
            "autoplay": self.clock.running,
            "lanes": [lane.snapshot() for lane in self.lanes],
        })
        return snap

    def results(self) -> Dict:
        return {
            "session_id": self.id,
            "config": self.config.snapshot(),
            "media_kind": self.media_kind,
            "timestamp": self.analysis.timestamp,
            "processing_time": self.analysis.processing_time,
            "lanes": [lane.snapshot() for lane in self.lanes],
            "summary": summarize(self.lanes),
            "playback": self.sequencer.metrics.snapshot(),
        }


class SessionManager:
    """Holds the one active session; a new analysis replaces it."""

    def __init__(self, tick_seconds: float = TICK_SECONDS):
        self.tick_seconds = tick_seconds
        self._session: Optional[SimulationSession] = None
        self._lock = threading.Lock()

    def create(
        self,
        config: ThresholdConfig,
        analysis: AnalysisResult,
        media_kind: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> SimulationSession:
        config.validate()
        session = SimulationSession(
            config, analysis, media_kind=media_kind, filename=filename, tick_seconds=self.tick_seconds,
        )
        with self._lock:
            previous, self._session = self._session, session
        if previous is not None:
            previous.close()
            logger.info("session %s replaced by %s", previous.id, session.id)
        logger.info(
            "session %s created: %d lanes, allocations=%s",
            session.id, len(session.lanes), [lane.allocated_time for lane in session.lanes],
        )
        return session

    def current(self) -> SimulationSession:
        with self._lock:
            session = self._session
        if session is None:
            raise NoActiveSession("no analysis has been run yet")
        return session

    def clear(self):
        with self._lock:
            previous, self._session = self._session, None
        if previous is not None:
            previous.close()
            logger.info("session %s cleared", previous.id)

    def control(self, action: str, autoplay: bool = False) -> SimulationSession:
        session = self.current()
        if action == "start":
            session.start(autoplay=autoplay)
        elif action == "pause":
            session.pause()
        elif action == "reset":
            session.reset()
        else:
            raise InvalidEvent(f"unknown action {action!r}, expected one of {ACTIONS}")
        return session
