"""Memo Codec — pixel placement ⇄ tagged ledger memo string.

Wire format: <TAG>:<{"x":<int>,"y":<int>,"c":"<hex color>"}>

Invariants:
    - encode is pure and validates: x, y in [0, canvas_size), color is #RRGGBB
    - decode never raises: foreign memos → NOT_OURS, bad payloads → MALFORMED
    - decode checks coordinates exactly as encode does, but accepts any color string
    - Payload JSON is compact (no whitespace) so memos stay within ledger size limits

Design Decisions:
    - Rejections returned as MemoRejection values, not exceptions: foreign memos are
      the common case on a shared account and the reconciler branches on them
    - bool rejected as a coordinate even though bool subclasses int in Python
"""

import json

from pixel_canvas.core.domain_types import (
    DEFAULT_CANVAS_SIZE,
    DEFAULT_MEMO_TAG,
    MEMO_SEPARATOR,
    MemoRejection,
    PixelPlacement,
    cell_key,
    is_coordinate,
    is_hex_color,
)
from pixel_canvas.core.errors import ErrorContext, InvalidPlacementError


def memo_prefix(tag: str = DEFAULT_MEMO_TAG) -> str:
    return f"{tag}{MEMO_SEPARATOR}"


def encode(
    placement: PixelPlacement,
    canvas_size: int = DEFAULT_CANVAS_SIZE,
    tag: str = DEFAULT_MEMO_TAG,
) -> str:
    """Build the memo string for a placement. Raises InvalidPlacementError."""
    validate_placement(placement, canvas_size)
    payload = json.dumps(
        {"x": placement.x, "y": placement.y, "c": placement.color},
        separators=(",", ":"),
    )
    return f"{memo_prefix(tag)}{payload}"


def decode(
    raw_memo: str | None,
    canvas_size: int = DEFAULT_CANVAS_SIZE,
    tag: str = DEFAULT_MEMO_TAG,
) -> PixelPlacement | MemoRejection:
    """Parse a memo into a placement, or say why it is not one."""
    prefix = memo_prefix(tag)
    if not raw_memo or not raw_memo.startswith(prefix):
        return MemoRejection.NOT_OURS

    try:
        payload = json.loads(raw_memo[len(prefix):])
    except (ValueError, RecursionError):
        return MemoRejection.MALFORMED

    if not isinstance(payload, dict):
        return MemoRejection.MALFORMED
    x, y, color = payload.get("x"), payload.get("y"), payload.get("c")
    if not is_coordinate(x, canvas_size) or not is_coordinate(y, canvas_size):
        return MemoRejection.MALFORMED
    if not isinstance(color, str):
        return MemoRejection.MALFORMED
    return PixelPlacement(x=x, y=y, color=color)


def validate_placement(placement: PixelPlacement, canvas_size: int) -> None:
    """Raise InvalidPlacementError if the placement cannot be encoded."""
    ctx = ErrorContext(cell=cell_key(placement.x, placement.y))
    for axis in ("x", "y"):
        value = getattr(placement, axis)
        if not is_coordinate(value, canvas_size):
            raise InvalidPlacementError(
                f"{axis}={value!r} outside canvas [0, {canvas_size})", axis, ctx,
            )
    if not is_hex_color(placement.color):
        raise InvalidPlacementError(
            f"color {placement.color!r} is not #RRGGBB", "color", ctx,
        )
