"""Health, readiness and metrics endpoints."""

from fastapi import APIRouter, HTTPException, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..core.domain.status import ConnectionStatus
from ..monitor import get_monitor

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness: always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready():
    """Readiness: ok solo con la suscripción activa."""
    monitor = get_monitor()
    if monitor is None or monitor.current_status() != ConnectionStatus.SUBSCRIBED:
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready"}


@router.get("/metrics")
def metrics():
    """Métricas Prometheus del proceso."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
