"""Pixel Canvas API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CanvasError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - One CanvasSyncService per process, built in the lifespan and kept on app.state
    - A failed initial sync does not stop startup (readiness stays 503)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - httpx clients owned by the lifespan so connection pools close on shutdown
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pixel_canvas.api.error_handlers import register_error_handlers
from pixel_canvas.api.routes import canvas, health
from pixel_canvas.config import Settings, get_settings
from pixel_canvas.core.errors import FetchFailedError
from pixel_canvas.infrastructure.mirror_node_client import MirrorNodeClient
from pixel_canvas.infrastructure.observability import setup_logging
from pixel_canvas.infrastructure.wallet_relay_client import WalletRelayClient
from pixel_canvas.services.canvas_sync import CanvasSyncService

logger = logging.getLogger(__name__)


def build_canvas_service(
    settings: Settings,
    mirror_http: httpx.AsyncClient,
    relay_http: httpx.AsyncClient | None,
) -> CanvasSyncService:
    """Wire collaborators and configured constants into the sync service."""
    fetcher = MirrorNodeClient(
        mirror_http,
        page_limit=settings.fetch_page_limit,
        max_pages=settings.fetch_max_pages,
        retry_after_ms=int(settings.fetch_cooldown_seconds * 1000),
    )
    return CanvasSyncService(
        fetcher,
        WalletRelayClient(relay_http),
        canvas_account_id=settings.canvas_account_id,
        canvas_size=settings.canvas_size,
        memo_tag=settings.memo_tag,
        placement_fee_tinybars=settings.placement_fee_tinybars,
        cooldown_seconds=settings.fetch_cooldown_seconds,
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
        pending_ttl_seconds=settings.pending_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    mirror_http = httpx.AsyncClient(
        base_url=settings.mirror_node_url, timeout=settings.fetch_timeout_seconds,
    )
    relay_http = None
    if settings.wallet_relay_url:
        relay_http = httpx.AsyncClient(
            base_url=settings.wallet_relay_url,
            timeout=settings.wallet_relay_timeout_seconds,
        )
    service = build_canvas_service(settings, mirror_http, relay_http)
    app.state.canvas_service = service

    try:
        await service.refresh()
    except FetchFailedError as e:
        logger.warning(f"Initial canvas sync failed: {e.message}")
    logger.info(
        "Pixel Canvas API started",
        extra={"account_id": settings.canvas_account_id},
    )
    yield
    logger.info("Pixel Canvas API shutting down")
    await mirror_http.aclose()
    if relay_http is not None:
        await relay_http.aclose()


app = FastAPI(
    title="Pixel Canvas API", version="1.0.0", lifespan=lifespan,
)

# CORS origins come from settings
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(canvas.router)
