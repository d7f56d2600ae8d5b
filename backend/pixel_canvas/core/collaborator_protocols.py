"""Boundary Protocols — contracts between the canvas core and its ledger collaborators.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - Fetching and submitting go through Protocol types
    - A transfer is exactly two legs that sum to zero: payer −fee, canvas +fee

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do network IO, but the pure functions
      fed by them (reconcile, encode) are never async themselves
"""

from dataclasses import dataclass
from typing import Protocol

from pixel_canvas.core.domain_types import LedgerRecord


@dataclass(frozen=True)
class TransferLeg:
    account_id: str
    amount_tinybars: int


@dataclass(frozen=True)
class TransferRequest:
    """Minimal-value transfer to the canvas account carrying a pixel memo."""
    legs: tuple[TransferLeg, TransferLeg]
    memo: str

    @property
    def payer(self) -> str:
        return self.legs[0].account_id


def build_transfer(
    payer_account_id: str, canvas_account_id: str, fee_tinybars: int, memo: str,
) -> TransferRequest:
    if fee_tinybars <= 0:
        raise ValueError("fee_tinybars must be positive")
    return TransferRequest(
        legs=(
            TransferLeg(payer_account_id, -fee_tinybars),
            TransferLeg(canvas_account_id, fee_tinybars),
        ),
        memo=memo,
    )


class TransactionFetcher(Protocol):
    """Fetch collaborator. Raises FetchFailedError on any transport failure."""
    async def fetch_records(self, account_id: str) -> list[LedgerRecord]: ...


class TransferSubmitter(Protocol):
    """Submit collaborator. Returns a transaction id.

    Raises WalletNotConnectedError or SubmitFailedError.
    """
    async def submit_transfer(self, transfer: TransferRequest) -> str: ...
