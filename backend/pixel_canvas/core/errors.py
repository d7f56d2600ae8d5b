"""Error Hierarchy — typed, categorized exceptions for canvas failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Memo decode problems are NOT exceptions (see MemoRejection in domain_types)
    - Fetch/submit failures are recoverable; state is never partially merged
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with CanvasError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    cell: str | None = None
    account_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class CanvasError(Exception):
    """Base exception for all canvas errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "cell": self.context.cell,
                    "account_id": self.context.account_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Caller Errors (400-level) ──────────────────────────────────

class InvalidPlacementError(CanvasError):
    """Placement outside the canvas or with a non-hex color reached encode."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_PLACEMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class WalletNotConnectedError(CanvasError):
    """No wallet/relay available to sign and submit the transfer."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Wallet is not connected. Connect a wallet before placing pixels.",
            "WALLET_NOT_CONNECTED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── External Errors (500-level) ────────────────────────────────

class FetchFailedError(CanvasError):
    """Ledger query failed; canvas state left untouched, retry after cooldown."""
    def __init__(
        self,
        message: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        if ctx.user_message is None:
            ctx.user_message = "Could not load canvas data from the mirror node"
        super().__init__(
            f"Canvas fetch failed: {message}",
            "FETCH_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx, 503,
        )


class SubmitFailedError(CanvasError):
    """Signed transfer could not be submitted; optimistic entry is NOT reverted."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        if ctx.user_message is None:
            ctx.user_message = "Could not place pixel. Please try again."
        super().__init__(
            f"Pixel submission failed: {message}",
            "SUBMIT_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
