"""Canvas Schemas — Pydantic models for canvas read, memo and placement endpoints.

Invariants:
    - PlacementRequest.color is #RRGGBB (case-insensitive), coordinates non-negative
    - ordering_key serialized as a string to keep nanosecond precision in JSON
"""

from pydantic import BaseModel, Field, field_validator

from pixel_canvas.core.domain_types import (
    DecodedRecord, PixelPlacement, RefreshOutcome,
)

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class PlacementRequest(BaseModel):
    """Pixel placement from the UI; upper bounds checked against canvas_size."""
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    color: str = Field(pattern=HEX_COLOR_PATTERN)

    def to_placement(self) -> PixelPlacement:
        return PixelPlacement(x=self.x, y=self.y, color=self.color)


class SubmitPixelRequest(PlacementRequest):
    payer_account_id: str | None = Field(None, pattern=r"^\d+\.\d+\.\d+$")

    @field_validator("payer_account_id", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PixelResponse(BaseModel):
    x: int
    y: int
    color: str
    ordering_key: str
    owner: str
    pending: bool = False

    @classmethod
    def from_record(cls, record: DecodedRecord, pending: bool = False) -> "PixelResponse":
        return cls(
            x=record.x, y=record.y, color=record.color,
            ordering_key=str(record.ordering_key), owner=record.owner,
            pending=pending,
        )


class CanvasResponse(BaseModel):
    canvas_size: int
    pixel_count: int
    pending_count: int
    pixels: list[PixelResponse]


class GridResponse(BaseModel):
    canvas_size: int
    rows: list[list[str]]


class CanvasConfigResponse(BaseModel):
    canvas_size: int
    canvas_account_id: str
    hedera_network: str
    placement_fee_tinybars: int
    memo_tag: str
    palette: list[str]
    empty_color: str


class RefreshResponse(BaseModel):
    outcome: RefreshOutcome
    pixel_count: int


class MemoResponse(BaseModel):
    memo: str


class SubmitPixelResponse(BaseModel):
    transaction_id: str
    memo: str
    pixel: PixelResponse
