"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Loaded once per process: get_settings() is cached (lru_cache)
    - memo_tag never contains the memo separator ":" (prefix must stay unambiguous)
    - canvas_size is explicit config, never a literal in core code

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults target Hedera testnet so the service works out-of-the-box
    - Changing canvas_size invalidates memos encoded for cells beyond the new size
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from pixel_canvas.core.domain_types import (
    DEFAULT_CANVAS_SIZE, DEFAULT_MEMO_TAG, MEMO_SEPARATOR,
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Canvas
    canvas_size: int = Field(DEFAULT_CANVAS_SIZE, ge=1, le=1000)
    canvas_account_id: str = "0.0.12345"
    memo_tag: str = DEFAULT_MEMO_TAG
    placement_fee_tinybars: int = Field(1000, gt=0)  # 0.00001 HBAR

    @field_validator("memo_tag")
    @classmethod
    def check_memo_tag(cls, v: str) -> str:
        if not v or MEMO_SEPARATOR in v:
            raise ValueError(
                f"memo_tag must be non-empty and must not contain {MEMO_SEPARATOR!r}",
            )
        return v

    # Ledger query service
    hedera_network: str = "testnet"
    mirror_node_url: str = "https://testnet.mirrornode.hedera.com"

    @field_validator("mirror_node_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    fetch_cooldown_seconds: float = 2.0
    fetch_timeout_seconds: float = 10.0
    fetch_page_limit: int = Field(1000, ge=1, le=1000)
    fetch_max_pages: int = Field(1, ge=1)

    # Pending submissions
    pending_ttl_seconds: float = 120.0

    # Wallet relay (signs + submits transfers); unset = no wallet connected
    wallet_relay_url: str | None = None
    wallet_relay_timeout_seconds: float = 30.0

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
