"""Pending Overlay — locally submitted placements tracked apart from authoritative state.

Invariants:
    - Authoritative CanvasState is never mutated by pending entries
    - At most one pending entry per cell (a newer local submit replaces the older)
    - A pending entry is shown only while its local clock beats the authoritative record
    - prune() drops confirmed entries and entries older than the TTL
    - withdraw() removes an entry only while it is still the cell's current entry,
      and never restores an entry that was itself withdrawn

Design Decisions:
    - Two tiers merged at render time instead of one blended mapping: a submission
      that never lands expires after ttl_seconds instead of lingering forever
    - "Confirmed" = authoritative record with same color and owner; the ledger
      timestamp can never equal the local clock so keys are not compared for this
"""

from dataclasses import dataclass, field
from collections.abc import Mapping

from pixel_canvas.core.canvas_reconciler import apply_optimistic_local
from pixel_canvas.core.domain_types import (
    CanvasState,
    CellKey,
    DecodedRecord,
    OrderingKey,
    PixelPlacement,
    cell_key,
)


@dataclass(frozen=True)
class PendingPlacement:
    """A placement submitted by this process but not yet seen on the ledger."""
    placement: PixelPlacement
    owner: str
    local_clock: OrderingKey
    submitted_at: float  # monotonic seconds, for expiry only

    @property
    def key(self) -> CellKey:
        return cell_key(self.placement.x, self.placement.y)

    def is_confirmed_by(self, record: DecodedRecord | None) -> bool:
        return (
            record is not None
            and record.color.lower() == self.placement.color.lower()
            and record.owner == self.owner
        )


@dataclass
class PendingOverlay:
    """Per-process set of unconfirmed submissions, keyed by cell."""

    ttl_seconds: float = 120.0
    entries: dict[CellKey, PendingPlacement] = field(default_factory=dict)
    withdrawn: set[PendingPlacement] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self.entries)

    def add(self, pending: PendingPlacement) -> None:
        self.entries[pending.key] = pending

    def discard(self, x: int, y: int) -> PendingPlacement | None:
        """Roll back the pending entry for a cell. Returns what was removed."""
        return self.entries.pop(cell_key(x, y), None)

    def withdraw(
        self, pending: PendingPlacement, restore: PendingPlacement | None = None,
    ) -> bool:
        """Take back a failed submission, putting `restore` back in its place.

        A newer entry for the same cell is left alone. Returns True when
        `pending` was the current entry and has been removed.
        """
        self.withdrawn.add(pending)
        if self.entries.get(pending.key) is not pending:
            return False
        if restore is None or restore in self.withdrawn:
            del self.entries[pending.key]
        else:
            self.entries[pending.key] = restore
        return True

    def is_showing(self, record: DecodedRecord) -> bool:
        """True when `record` in a rendered view comes from a pending entry."""
        pending = self.entries.get(cell_key(record.x, record.y))
        return pending is not None and pending.local_clock == record.ordering_key

    def prune(self, state: Mapping[str, DecodedRecord], now: float) -> list[PendingPlacement]:
        """Drop confirmed and expired entries. Returns the dropped entries."""
        dropped = [
            p for p in self.entries.values()
            if p.is_confirmed_by(state.get(p.key))
            or now - p.submitted_at >= self.ttl_seconds
        ]
        for p in dropped:
            del self.entries[p.key]
        self.withdrawn = {
            p for p in self.withdrawn if now - p.submitted_at < self.ttl_seconds
        }
        return dropped

    def render_view(self, state: Mapping[str, DecodedRecord]) -> CanvasState:
        """Authoritative state with still-newer pending placements laid on top."""
        view: CanvasState = dict(state)
        for p in self.entries.values():
            current = view.get(p.key)
            if current is None or p.local_clock > current.ordering_key:
                view = apply_optimistic_local(view, p.placement, p.owner, p.local_clock)
        return view
