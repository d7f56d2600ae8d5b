"""Canvas Render — projects a canvas view onto a dense N×N color grid.

Invariants:
    - Output is exactly canvas_size rows of canvas_size colors, row index = y
    - Empty cells and cells holding a non-hex color show EMPTY_CELL_COLOR
    - Records outside the grid (stale larger canvas) are ignored
"""

from collections.abc import Mapping

from pixel_canvas.core.domain_types import (
    DEFAULT_CANVAS_SIZE,
    EMPTY_CELL_COLOR,
    DecodedRecord,
    is_hex_color,
)


def render_grid(
    view: Mapping[str, DecodedRecord],
    canvas_size: int = DEFAULT_CANVAS_SIZE,
    empty_color: str = EMPTY_CELL_COLOR,
) -> list[list[str]]:
    grid = [[empty_color] * canvas_size for _ in range(canvas_size)]
    for record in view.values():
        if not (0 <= record.x < canvas_size and 0 <= record.y < canvas_size):
            continue
        # decoder accepts any color string; renderer must tolerate bad ones
        if is_hex_color(record.color):
            grid[record.y][record.x] = record.color
    return grid
