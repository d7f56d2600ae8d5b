"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 until one fetch-reconcile cycle has succeeded

Design Decisions:
    - Separate liveness/readiness: an instance with an empty, never-synced canvas
      should not receive traffic, but should not be restarted either
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from pixel_canvas.api.dependencies import get_canvas_service
from pixel_canvas.services.canvas_sync import CanvasSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "pixel-canvas-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(
    service: CanvasSyncService = Depends(get_canvas_service),
):
    """Readiness probe: canvas synced from the mirror node at least once."""
    if not service.is_ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "canvas_not_synced",
            },
        )
    return {"status": "ready", "checks": {"mirror_node": "synced"}}
