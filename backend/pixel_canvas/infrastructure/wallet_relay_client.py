"""Wallet Relay Client — hands a transfer to an external signer and returns its transaction id.

Invariants:
    - No relay configured (http is None) → WalletNotConnectedError, nothing sent
    - Relay 409 means "no paired wallet for this payer" → WalletNotConnectedError
    - Every other failure → SubmitFailedError; never retried here
    - Signing happens in the relay; this process never sees keys

Design Decisions:
    - Plain JSON over httpx instead of a ledger SDK: the core only needs
      "attach this memo to a minimal-value transfer", not signing mechanics
"""

import logging

import httpx

from pixel_canvas.core.collaborator_protocols import TransferRequest
from pixel_canvas.core.errors import (
    ErrorContext, SubmitFailedError, WalletNotConnectedError,
)

logger = logging.getLogger(__name__)

_SUBMIT_PATH = "/transfers"


def transfer_payload(transfer: TransferRequest) -> dict:
    return {
        "transfers": [
            {"account": leg.account_id, "amount": leg.amount_tinybars}
            for leg in transfer.legs
        ],
        "memo": transfer.memo,
        "account_to_sign": transfer.payer,
    }


class WalletRelayClient:
    """Submit collaborator backed by an HTTP signing relay."""

    def __init__(self, http: httpx.AsyncClient | None):
        self.http = http

    async def submit_transfer(self, transfer: TransferRequest) -> str:
        ctx = ErrorContext(account_id=transfer.payer)
        if self.http is None:
            raise WalletNotConnectedError(ctx)

        try:
            response = await self.http.post(_SUBMIT_PATH, json=transfer_payload(transfer))
        except httpx.TimeoutException:
            raise SubmitFailedError("wallet relay timeout", ctx)
        except httpx.HTTPError as e:
            raise SubmitFailedError(f"wallet relay unreachable: {e}", ctx)

        if response.status_code == httpx.codes.CONFLICT:
            raise WalletNotConnectedError(ctx)
        if response.is_error:
            raise SubmitFailedError(
                f"wallet relay returned {response.status_code}", ctx,
            )
        try:
            transaction_id = response.json()["transaction_id"]
        except (ValueError, KeyError, TypeError):
            raise SubmitFailedError("wallet relay response missing transaction_id", ctx)

        logger.info(
            "Transfer submitted",
            extra={"account_id": transfer.payer, "transaction_id": transaction_id},
        )
        return str(transaction_id)
