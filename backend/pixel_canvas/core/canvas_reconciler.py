"""Canvas Reconciler — folds a batch of ledger records into latest-write-wins canvas state.

Invariants:
    - Each stored record is the max by ordering_key among valid records seen for its cell
    - Replacement only on strictly greater ordering_key: equal keys keep the first seen
    - Correct for any input order; only the tie-break among equal keys depends on order
    - Foreign and malformed memos are skipped, never raised
    - Pure with respect to the batch: same records in same order → same state

Design Decisions:
    - Single left-to-right pass, no sort: mirror node already returns records newest-first
    - Rebuilt wholesale per fetch (no diff against the previous state)
    - apply_optimistic_local returns a new mapping; the caller owns all mutable state
"""

import logging
from collections.abc import Iterable, Mapping

from pixel_canvas.core.domain_types import (
    DEFAULT_CANVAS_SIZE,
    DEFAULT_MEMO_TAG,
    UNKNOWN_OWNER,
    CanvasState,
    DecodedRecord,
    LedgerRecord,
    MemoRejection,
    OrderingKey,
    PixelPlacement,
    cell_key,
)
from pixel_canvas.core import memo_codec

logger = logging.getLogger(__name__)


def reconcile(
    records: Iterable[LedgerRecord],
    canvas_size: int = DEFAULT_CANVAS_SIZE,
    tag: str = DEFAULT_MEMO_TAG,
) -> CanvasState:
    """Decode every record and keep the newest placement per cell."""
    state: CanvasState = {}
    seen = malformed = 0

    for record in records:
        seen += 1
        decoded = memo_codec.decode(record.memo, canvas_size, tag)
        if decoded is MemoRejection.NOT_OURS:
            continue
        if decoded is MemoRejection.MALFORMED:
            malformed += 1
            logger.warning(
                "Skipping malformed pixel memo",
                extra={"ordering_key": str(record.ordering_key)},
            )
            continue

        key = cell_key(decoded.x, decoded.y)
        current = state.get(key)
        if current is None or record.ordering_key > current.ordering_key:
            state[key] = DecodedRecord(
                x=decoded.x,
                y=decoded.y,
                color=decoded.color,
                ordering_key=record.ordering_key,
                owner=record.transfer_origin or UNKNOWN_OWNER,
            )

    logger.info(
        f"Reconciled {len(state)} pixels from {seen} records "
        f"({malformed} malformed)",
        extra={"pixel_count": len(state), "record_count": seen},
    )
    return state


def apply_optimistic_local(
    state: Mapping[str, DecodedRecord],
    placement: PixelPlacement,
    claimed_owner: str,
    local_clock: OrderingKey,
) -> CanvasState:
    """Overlay an unconfirmed placement. local_clock must exceed every observed key."""
    updated: CanvasState = dict(state)
    updated[cell_key(placement.x, placement.y)] = DecodedRecord(
        x=placement.x,
        y=placement.y,
        color=placement.color,
        ordering_key=local_clock,
        owner=claimed_owner,
    )
    return updated


def max_ordering_key(state: Mapping[str, DecodedRecord]) -> OrderingKey | None:
    """Largest ordering key present, or None for an empty canvas."""
    return max((r.ordering_key for r in state.values()), default=None)
