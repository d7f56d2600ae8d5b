"""Domain Types — value types and constants shared by codec, reconciler and overlay.

Invariants:
    - CellKey is always "x,y" (separator mandatory, round-trips for multi-digit coordinates)
    - OrderingKey compares exactly (Decimal for ledger timestamps, never float)
    - PixelPlacement and DecodedRecord are immutable
    - Decode and refresh outcomes are Enums, never raw strings

Design Decisions:
    - NewType over wrapper classes: zero runtime cost, full type-checker support
    - frozen dataclasses: records are shared between state snapshots without copying
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

CellKey = NewType("CellKey", str)          # "x,y"
AccountId = NewType("AccountId", str)      # "shard.realm.num"
OrderingKey = Decimal                      # consensus seconds, nanosecond precision


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_CANVAS_SIZE = 50
DEFAULT_MEMO_TAG = "HEDERA_PLACE_PIXEL"
MEMO_SEPARATOR = ":"
UNKNOWN_OWNER = "unknown"

EMPTY_CELL_COLOR = "#1a1a2e"
DEFAULT_PALETTE = (
    "#FF0000",  # red
    "#00FF00",  # green
    "#0000FF",  # blue
    "#FFFF00",  # yellow
    "#FF00FF",  # magenta
    "#00FFFF",  # cyan
    "#FFFFFF",  # white
    "#000000",  # black
    "#FF8000",  # orange
    "#8000FF",  # purple
)

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
_CELL_KEY_SEPARATOR = ","


# ─── Enums ───────────────────────────────────────────────────────

class MemoRejection(str, Enum):
    """Why a memo did not decode into a placement. Expected noise, never an error."""
    NOT_OURS = "not_our_memo"
    MALFORMED = "malformed_memo"


class RefreshOutcome(str, Enum):
    """Result of one requested fetch-reconcile cycle."""
    REFRESHED = "refreshed"
    THROTTLED = "throttled"
    IN_FLIGHT = "in_flight"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class PixelPlacement:
    """A pending "place pixel (x, y) with color" request from the UI."""
    x: int
    y: int
    color: str


@dataclass(frozen=True)
class LedgerRecord:
    """One transaction as handed over by the fetch collaborator (memo already text)."""
    memo: str | None
    ordering_key: OrderingKey
    transfer_origin: str | None = None


@dataclass(frozen=True)
class DecodedRecord:
    """A ledger record that decoded into a placement; the value stored per cell."""
    x: int
    y: int
    color: str
    ordering_key: OrderingKey
    owner: str = UNKNOWN_OWNER


CanvasState = dict[CellKey, DecodedRecord]


# ─── Helpers ─────────────────────────────────────────────────────

def cell_key(x: int, y: int) -> CellKey:
    return CellKey(f"{x}{_CELL_KEY_SEPARATOR}{y}")


def parse_cell_key(key: str) -> tuple[int, int]:
    """Inverse of cell_key. Raises ValueError on anything else."""
    x_part, sep, y_part = key.partition(_CELL_KEY_SEPARATOR)
    if not sep:
        raise ValueError(f"cell key {key!r} has no separator")
    return int(x_part), int(y_part)


def is_hex_color(value: object) -> bool:
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))


def is_coordinate(value: object, canvas_size: int) -> bool:
    """True for a real int (bool excluded) in [0, canvas_size)."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < canvas_size
    )
