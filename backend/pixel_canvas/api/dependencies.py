"""Route Dependencies — resolves the process-wide CanvasSyncService.

Invariants:
    - The service is created once in the lifespan and stored on app.state
    - Routes depend on get_canvas_service; tests override it
"""

from fastapi import Request

from pixel_canvas.services.canvas_sync import CanvasSyncService


def get_canvas_service(request: Request) -> CanvasSyncService:
    return request.app.state.canvas_service
