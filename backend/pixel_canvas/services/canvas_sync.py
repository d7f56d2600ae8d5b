"""Canvas Sync Service — owns canvas state and runs fetch-reconcile and submit cycles.

Invariants:
    - At most one fetch in flight; a refresh requested meanwhile is dropped (IN_FLIGHT)
    - Fetches start no more often than cooldown_seconds apart (THROTTLED otherwise)
    - Authoritative state replaced wholesale only after a successful reconcile;
      fetch failure or timeout leaves it untouched
    - Optimistic pending entry recorded before the submit call is awaited
    - Local clock strictly greater than every ordering key observed so far
    - Failed submits keep the pending entry unless the caller passes withdraw_on_failure;
      a withdrawal never touches a newer entry for the same cell

Design Decisions:
    - asyncio.Lock + locked() check: overlapping refreshes are dropped, not queued
    - Cooldown measured from fetch start (also after a failure) to respect rate limits
    - Clocks injected (monotonic for cooldown/expiry, wall ns for local ordering keys)
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from pixel_canvas.core import memo_codec
from pixel_canvas.core.canvas_reconciler import max_ordering_key, reconcile
from pixel_canvas.core.collaborator_protocols import (
    TransactionFetcher, TransferSubmitter, build_transfer,
)
from pixel_canvas.core.domain_types import (
    DEFAULT_CANVAS_SIZE,
    DEFAULT_MEMO_TAG,
    CanvasState,
    DecodedRecord,
    OrderingKey,
    PixelPlacement,
    RefreshOutcome,
)
from pixel_canvas.core.errors import (
    CanvasError, ErrorContext, FetchFailedError, WalletNotConnectedError,
)
from pixel_canvas.core.pending_overlay import PendingOverlay, PendingPlacement

logger = logging.getLogger(__name__)

_ONE_NANOSECOND = Decimal("0.000000001")


@dataclass(frozen=True)
class SubmissionReceipt:
    transaction_id: str
    memo: str
    pending: PendingPlacement


class CanvasSyncService:
    """Per-process canvas: authoritative state + pending overlay."""

    def __init__(
        self,
        fetcher: TransactionFetcher,
        submitter: TransferSubmitter,
        *,
        canvas_account_id: str,
        canvas_size: int = DEFAULT_CANVAS_SIZE,
        memo_tag: str = DEFAULT_MEMO_TAG,
        placement_fee_tinybars: int = 1000,
        cooldown_seconds: float = 2.0,
        fetch_timeout_seconds: float = 10.0,
        pending_ttl_seconds: float = 120.0,
        monotonic: Callable[[], float] = time.monotonic,
        wall_clock_ns: Callable[[], int] = time.time_ns,
    ):
        self.fetcher = fetcher
        self.submitter = submitter
        self.canvas_account_id = canvas_account_id
        self.canvas_size = canvas_size
        self.memo_tag = memo_tag
        self.placement_fee_tinybars = placement_fee_tinybars
        self.cooldown_seconds = cooldown_seconds
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self._monotonic = monotonic
        self._wall_clock_ns = wall_clock_ns

        self.state: CanvasState = {}
        self.pending = PendingOverlay(ttl_seconds=pending_ttl_seconds)
        self.last_refreshed_at: float | None = None
        self._last_fetch_started: float | None = None
        self._high_water: OrderingKey | None = None
        self._fetch_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self.last_refreshed_at is not None

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    # ─── Fetch / reconcile ──────────────────────────────────────

    async def refresh(self) -> RefreshOutcome:
        """Run one fetch-reconcile cycle. Raises FetchFailedError."""
        if self._fetch_lock.locked():
            logger.info("Refresh dropped: fetch already in flight")
            return RefreshOutcome.IN_FLIGHT
        now = self._monotonic()
        if (
            self._last_fetch_started is not None
            and now - self._last_fetch_started < self.cooldown_seconds
        ):
            logger.info("Refresh throttled")
            return RefreshOutcome.THROTTLED

        async with self._fetch_lock:
            self._last_fetch_started = now
            records = await self._fetch_with_timeout()
            new_state = reconcile(records, self.canvas_size, self.memo_tag)
            self.state = new_state
            self._observe(max_ordering_key(new_state))
            dropped = self.pending.prune(new_state, self._monotonic())
            self.last_refreshed_at = self._monotonic()

        logger.info(
            f"Canvas refreshed: {len(new_state)} pixels, "
            f"{len(dropped)} pending resolved",
            extra={"pixel_count": len(new_state), "pending_count": len(self.pending)},
        )
        return RefreshOutcome.REFRESHED

    async def _fetch_with_timeout(self):
        retry_after_ms = int(self.cooldown_seconds * 1000)
        try:
            return await asyncio.wait_for(
                self.fetcher.fetch_records(self.canvas_account_id),
                timeout=self.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Canvas fetch timed out")
            raise FetchFailedError(
                f"timed out after {self.fetch_timeout_seconds}s",
                retry_after_ms,
                ErrorContext(account_id=self.canvas_account_id),
            )
        except FetchFailedError as e:
            logger.warning(
                f"Canvas fetch failed: {e.message}", extra={"error_code": e.code},
            )
            e.context.retry_after_ms = e.context.retry_after_ms or retry_after_ms
            raise

    # ─── Submit ─────────────────────────────────────────────────

    def encode_memo(self, placement: PixelPlacement) -> str:
        return memo_codec.encode(placement, self.canvas_size, self.memo_tag)

    async def submit_pixel(
        self,
        placement: PixelPlacement,
        payer_account_id: str | None,
        *,
        withdraw_on_failure: bool = False,
    ) -> SubmissionReceipt:
        """Encode, overlay optimistically, then submit.

        With withdraw_on_failure, a failed submit takes back this call's own
        pending entry and restores the one it replaced.

        Raises InvalidPlacementError, WalletNotConnectedError, SubmitFailedError.
        """
        if not payer_account_id:
            raise WalletNotConnectedError()
        memo = self.encode_memo(placement)
        transfer = build_transfer(
            payer_account_id, self.canvas_account_id,
            self.placement_fee_tinybars, memo,
        )

        pending = PendingPlacement(
            placement=placement,
            owner=payer_account_id,
            local_clock=self._next_local_clock(),
            submitted_at=self._monotonic(),
        )
        previous = self.pending.entries.get(pending.key)
        self.pending.add(pending)

        try:
            transaction_id = await self.submitter.submit_transfer(transfer)
        except CanvasError as e:
            if withdraw_on_failure and self.pending.withdraw(pending, restore=previous):
                logger.info(
                    "Withdrew pending placement after failed submit",
                    extra={"error_code": e.code, "cell": pending.key},
                )
            raise
        logger.info(
            f"Pixel placed at ({placement.x}, {placement.y})",
            extra={
                "cell": pending.key,
                "account_id": payer_account_id,
                "transaction_id": transaction_id,
            },
        )
        return SubmissionReceipt(transaction_id, memo, pending)

    def discard_pending(self, x: int, y: int) -> bool:
        return self.pending.discard(x, y) is not None

    def is_pending(self, record: DecodedRecord) -> bool:
        return self.pending.is_showing(record)

    # ─── Views ──────────────────────────────────────────────────

    def view(self) -> CanvasState:
        """Authoritative state with live pending placements overlaid."""
        self.pending.prune(self.state, self._monotonic())
        return self.pending.render_view(self.state)

    def _next_local_clock(self) -> OrderingKey:
        candidate = Decimal(self._wall_clock_ns()).scaleb(-9)
        if self._high_water is not None and candidate <= self._high_water:
            candidate = self._high_water + _ONE_NANOSECOND
        self._observe(candidate)
        return candidate

    def _observe(self, key: OrderingKey | None) -> None:
        if key is not None and (self._high_water is None or key > self._high_water):
            self._high_water = key
