"""Endpoints del feed: estado, historial, reset, reconexión y ciclo de vida."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..monitor import SensorFeedMonitor, get_monitor
from ..schemas import ActivityIn, ActivityOut, FeedStatusOut, ReadingOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feed", tags=["feed"])


def get_feed_monitor() -> SensorFeedMonitor:
    monitor = get_monitor()
    if monitor is None:
        raise HTTPException(status_code=503, detail="feed monitor not running")
    return monitor


@router.get("/status", response_model=FeedStatusOut)
def feed_status(monitor: SensorFeedMonitor = Depends(get_feed_monitor)):
    """Estado de conexión, última lectura, severidad e historial."""
    return FeedStatusOut.from_snapshot(monitor.snapshot())


@router.get("/history", response_model=List[ReadingOut])
def feed_history(monitor: SensorFeedMonitor = Depends(get_feed_monitor)):
    return [ReadingOut.from_reading(r) for r in monitor.history_snapshot()]


@router.post("/reset", response_model=FeedStatusOut)
def feed_reset(monitor: SensorFeedMonitor = Depends(get_feed_monitor)):
    """Vacía historial y última lectura; la conexión no se toca."""
    monitor.reset()
    return FeedStatusOut.from_snapshot(monitor.snapshot())


@router.post("/reconnect", response_model=FeedStatusOut)
def feed_reconnect(monitor: SensorFeedMonitor = Depends(get_feed_monitor)):
    monitor.reconnect("manual")
    return FeedStatusOut.from_snapshot(monitor.snapshot())


@router.post("/activity", response_model=ActivityOut)
def feed_activity(body: ActivityIn, monitor: SensorFeedMonitor = Depends(get_feed_monitor)):
    """Señal de actividad del host (active/background)."""
    logger.info("[API] Activity signal: %s", body.state.value)
    monitor.notify_activity(body.state)
    return ActivityOut(
        state=monitor.lifecycle.state,
        status=monitor.current_status(),
        resumes=monitor.lifecycle.resumes,
    )
