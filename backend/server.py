import logging
import sys
from typing import Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
import uvicorn

from config import (
    DEFAULT_LANE_COUNT,
    DEFAULT_HIGH_THRESHOLD,
    DEFAULT_MEDIUM_THRESHOLD,
    HIGH_THRESHOLD_RANGE,
    MEDIUM_THRESHOLD_RANGE,
    LANE_COUNT_CHOICES,
    SERVER_HOST,
    SERVER_PORT,
    ThresholdConfig,
)
from detector import StubDetector, detect_media_kind
from errors import (
    TrafficError,
    InvalidConfig,
    InvalidEvent,
    EmptyLaneList,
    NoActiveSession,
    UnsupportedMedia,
)
from session import SessionManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Smart Traffic Light Control API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

settings = ThresholdConfig.default()
detector = StubDetector()
sessions = SessionManager()

ERROR_STATUS = {
    InvalidConfig: 422,
    InvalidEvent: 422,
    UnsupportedMedia: 415,
    EmptyLaneList: 409,
    NoActiveSession: 404,
}


class ConfigRequest(BaseModel):
    lane_count: int = Field(DEFAULT_LANE_COUNT, ge=min(LANE_COUNT_CHOICES), le=max(LANE_COUNT_CHOICES))
    high_threshold: int = Field(DEFAULT_HIGH_THRESHOLD, ge=HIGH_THRESHOLD_RANGE[0], le=HIGH_THRESHOLD_RANGE[1])
    medium_threshold: int = Field(DEFAULT_MEDIUM_THRESHOLD, ge=MEDIUM_THRESHOLD_RANGE[0], le=MEDIUM_THRESHOLD_RANGE[1])


class ControlRequest(BaseModel):
    action: str      # "start" | "pause" | "reset"
    autoplay: bool = False


@app.exception_handler(TrafficError)
async def traffic_error_handler(request: Request, exc: TrafficError):
    status = next((code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 400)
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/config")
def get_config():
    return settings.snapshot()


@app.post("/config")
def set_config(req: ConfigRequest):
    global settings
    settings = ThresholdConfig(
        lane_count=req.lane_count,
        high_threshold=req.high_threshold,
        medium_threshold=req.medium_threshold,
    ).validate()
    logger.info("configuration updated: %s", settings.snapshot())
    return settings.snapshot()


@app.post("/analyze")
async def analyze(
    file: UploadFile = File(...),
    lane_count: Optional[int] = Form(None),
    high_threshold: Optional[int] = Form(None, ge=HIGH_THRESHOLD_RANGE[0], le=HIGH_THRESHOLD_RANGE[1]),
    medium_threshold: Optional[int] = Form(None, ge=MEDIUM_THRESHOLD_RANGE[0], le=MEDIUM_THRESHOLD_RANGE[1]),
    seed: Optional[int] = Form(None),
):
    media_kind = detect_media_kind(file.filename, file.content_type)
    config = ThresholdConfig(
        lane_count=settings.lane_count if lane_count is None else lane_count,
        high_threshold=settings.high_threshold if high_threshold is None else high_threshold,
        medium_threshold=settings.medium_threshold if medium_threshold is None else medium_threshold,
    ).validate()

    media = await file.read()
    source = detector if seed is None else StubDetector(seed=seed)
    analysis = source.detect(config.lane_count, media=media)

    # replacing a session joins its clock thread; keep that off the event loop
    session = await run_in_threadpool(
        sessions.create, config, analysis, media_kind=media_kind, filename=file.filename,
    )
    return {
        "session_id": session.id,
        "media_kind": media_kind,
        "timestamp": analysis.timestamp,
        "processing_time": analysis.processing_time,
        "config": config.snapshot(),
        "lanes": [lane.snapshot() for lane in session.lanes],
    }


@app.post("/control")
def control(req: ControlRequest):
    session = sessions.control(req.action, autoplay=req.autoplay)
    return session.snapshot()


@app.post("/tick")
def tick():
    session = sessions.current()
    session.sequencer.tick()
    return session.snapshot()


@app.get("/state")
def state():
    return sessions.current().snapshot()


@app.get("/results")
def results():
    return sessions.current().results()


@app.delete("/session")
def clear_session():
    sessions.clear()
    return {"ok": True}


def main():
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    main()
