"""Canvas Routes — read the canvas, trigger a refresh, build memos, place pixels.

Invariants:
    - Reads serve authoritative state with pending placements overlaid
    - Refresh never fails on throttle/in-flight; it reports the outcome instead
    - Submit failure withdraws only this request's pending entry, then re-raises
    - CanvasError subclasses always reach the global handler

Design Decisions:
    - Routes only call CanvasSyncService; the pending overlay stays behind it
"""

from fastapi import APIRouter, Depends, HTTPException, status

from pixel_canvas.api.dependencies import get_canvas_service
from pixel_canvas.config import Settings, get_settings
from pixel_canvas.core.canvas_render import render_grid
from pixel_canvas.core.domain_types import DEFAULT_PALETTE, EMPTY_CELL_COLOR
from pixel_canvas.schemas.canvas import (
    CanvasConfigResponse,
    CanvasResponse,
    GridResponse,
    MemoResponse,
    PixelResponse,
    PlacementRequest,
    RefreshResponse,
    SubmitPixelRequest,
    SubmitPixelResponse,
)
from pixel_canvas.services.canvas_sync import CanvasSyncService

router = APIRouter(prefix="/api/v1/canvas", tags=["canvas"])


@router.get("", response_model=CanvasResponse)
async def get_canvas(service: CanvasSyncService = Depends(get_canvas_service)):
    """Current canvas view, pixels sorted by (y, x)."""
    pixels = [
        PixelResponse.from_record(record, pending=service.is_pending(record))
        for record in sorted(service.view().values(), key=lambda r: (r.y, r.x))
    ]
    return CanvasResponse(
        canvas_size=service.canvas_size,
        pixel_count=len(pixels),
        pending_count=service.pending_count,
        pixels=pixels,
    )


@router.get("/grid", response_model=GridResponse)
async def get_grid(service: CanvasSyncService = Depends(get_canvas_service)):
    return GridResponse(
        canvas_size=service.canvas_size,
        rows=render_grid(service.view(), service.canvas_size),
    )


@router.get("/config", response_model=CanvasConfigResponse)
async def get_canvas_config(settings: Settings = Depends(get_settings)):
    return CanvasConfigResponse(
        canvas_size=settings.canvas_size,
        canvas_account_id=settings.canvas_account_id,
        hedera_network=settings.hedera_network,
        placement_fee_tinybars=settings.placement_fee_tinybars,
        memo_tag=settings.memo_tag,
        palette=list(DEFAULT_PALETTE),
        empty_color=EMPTY_CELL_COLOR,
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_canvas(service: CanvasSyncService = Depends(get_canvas_service)):
    """One fetch-reconcile cycle. FetchFailedError → 503 via global handler."""
    outcome = await service.refresh()
    return RefreshResponse(outcome=outcome, pixel_count=len(service.state))


@router.post("/memo", response_model=MemoResponse)
async def build_memo(
    body: PlacementRequest,
    service: CanvasSyncService = Depends(get_canvas_service),
):
    """Memo string for a placement, for clients that sign transfers themselves."""
    return MemoResponse(memo=service.encode_memo(body.to_placement()))


@router.post(
    "/pixels", response_model=SubmitPixelResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def place_pixel(
    body: SubmitPixelRequest,
    service: CanvasSyncService = Depends(get_canvas_service),
):
    """Submit a placement. Accepted, not confirmed: a later refresh confirms it."""
    placement = body.to_placement()
    receipt = await service.submit_pixel(
        placement, body.payer_account_id, withdraw_on_failure=True,
    )
    pending = receipt.pending
    return SubmitPixelResponse(
        transaction_id=receipt.transaction_id,
        memo=receipt.memo,
        pixel=PixelResponse(
            x=placement.x, y=placement.y, color=placement.color,
            ordering_key=str(pending.local_clock), owner=pending.owner,
            pending=True,
        ),
    )


@router.delete(
    "/pixels/pending/{x}/{y}", status_code=status.HTTP_204_NO_CONTENT,
)
async def discard_pending_pixel(
    x: int, y: int,
    service: CanvasSyncService = Depends(get_canvas_service),
):
    if not service.discard_pending(x, y):
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=f"No pending placement at ({x}, {y})",
        )
