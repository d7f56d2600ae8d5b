"""Mirror Node Client — fetches canvas-account transactions from the ledger query service.

Invariants:
    - Returns LedgerRecord values only; JSON shape never leaks past this module
    - memo_base64 decoded here; undecodable memos become None (foreign, not an error)
    - consensus_timestamp parsed to an exact Decimal; unparseable records dropped
    - Every transport, status or body failure raised as FetchFailedError
    - No automatic retry: the caller retries after its cooldown

Design Decisions:
    - httpx.AsyncClient injected: one connection pool per process, MockTransport in tests
    - Owner = first negative transfer leg (the payer), falling back to the first leg
    - links.next pagination bounded by max_pages; default 1 page of 1000 newest records
"""

import base64
import logging
from decimal import Decimal, InvalidOperation

import httpx

from pixel_canvas.core.domain_types import LedgerRecord
from pixel_canvas.core.errors import ErrorContext, FetchFailedError

logger = logging.getLogger(__name__)

_TRANSACTIONS_PATH = "/api/v1/transactions"


def decode_memo_base64(memo_base64: object) -> str | None:
    """Ledger transport encoding → memo text. None when absent, non-string or undecodable."""
    if not memo_base64 or not isinstance(memo_base64, str):
        return None
    try:
        return base64.b64decode(memo_base64, validate=True).decode("utf-8")
    except ValueError:  # binascii.Error, UnicodeDecodeError, non-ASCII input
        return None


def parse_consensus_timestamp(value: object) -> Decimal | None:
    """'1700000000.123456789' → Decimal. None for anything non-finite or non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def extract_transfer_origin(transfers: object) -> str | None:
    if not isinstance(transfers, list):
        return None
    legs = [t for t in transfers if isinstance(t, dict) and t.get("account")]
    for leg in legs:
        amount = leg.get("amount")
        if isinstance(amount, int) and amount < 0:
            return leg["account"]
    return legs[0]["account"] if legs else None


def to_ledger_record(transaction: dict) -> LedgerRecord | None:
    """Map one mirror-node transaction JSON object to a LedgerRecord."""
    ordering_key = parse_consensus_timestamp(transaction.get("consensus_timestamp"))
    if ordering_key is None:
        logger.warning(
            "Dropping transaction without usable consensus_timestamp",
            extra={"transaction_id": transaction.get("transaction_id")},
        )
        return None
    return LedgerRecord(
        memo=decode_memo_base64(transaction.get("memo_base64")),
        ordering_key=ordering_key,
        transfer_origin=extract_transfer_origin(transaction.get("transfers")),
    )


class MirrorNodeClient:
    """Fetch collaborator backed by the Hedera mirror node REST API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        page_limit: int = 1000,
        max_pages: int = 1,
        retry_after_ms: int | None = None,
    ):
        self.http = http
        self.page_limit = page_limit
        self.max_pages = max_pages
        self.retry_after_ms = retry_after_ms

    async def fetch_records(self, account_id: str) -> list[LedgerRecord]:
        """Newest-first records for the account. Raises FetchFailedError."""
        records: list[LedgerRecord] = []
        url: str | None = _TRANSACTIONS_PATH
        params: dict | None = {
            "account.id": account_id,
            "limit": self.page_limit,
            "order": "desc",
        }
        pages = 0
        while url and pages < self.max_pages:
            body = await self._get_json(url, params, account_id)
            pages += 1
            for tx in body.get("transactions") or []:
                if isinstance(tx, dict):
                    record = to_ledger_record(tx)
                    if record is not None:
                        records.append(record)
            links = body.get("links")
            url = links.get("next") if isinstance(links, dict) else None
            params = None  # next link carries its own query string

        logger.info(
            f"Fetched {len(records)} transactions in {pages} page(s)",
            extra={"account_id": account_id, "record_count": len(records)},
        )
        return records

    async def _get_json(self, url: str, params: dict | None, account_id: str) -> dict:
        ctx = ErrorContext(account_id=account_id)
        try:
            response = await self.http.get(url, params=params)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException:
            raise FetchFailedError("mirror node timeout", self.retry_after_ms, ctx)
        except httpx.HTTPStatusError as e:
            raise FetchFailedError(
                f"mirror node returned {e.response.status_code}",
                self.retry_after_ms, ctx,
            )
        except httpx.HTTPError as e:
            raise FetchFailedError(
                f"mirror node unreachable: {e}", self.retry_after_ms, ctx,
            )
        except ValueError:
            raise FetchFailedError(
                "mirror node returned invalid JSON", self.retry_after_ms, ctx,
            )
        if not isinstance(body, dict):
            raise FetchFailedError(
                "unexpected mirror node response shape", self.retry_after_ms, ctx,
            )
        return body
