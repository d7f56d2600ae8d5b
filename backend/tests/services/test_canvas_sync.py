"""Integration Tests: CanvasSyncService — fetch cycles, throttling and submissions.

Invariants:
    - Successful refresh replaces state wholesale
    - Failed or timed-out refresh leaves state untouched
    - Cooldown and in-flight refreshes are reported, not fetched
    - Submission records the pending entry before the submit call resolves
    - Failed submission leaves the pending entry unless withdraw_on_failure is set,
      and a withdrawal never removes a newer overlapping placement
"""

import asyncio
from decimal import Decimal

import pytest

from pixel_canvas.core.domain_types import PixelPlacement, RefreshOutcome
from pixel_canvas.core.errors import (
    FetchFailedError, InvalidPlacementError, SubmitFailedError,
    WalletNotConnectedError,
)

from tests.services.ledger_fakes import pixel_record


# ==============================================================================
# Refresh
# ==============================================================================


async def test_refresh_replaces_state(service, fetcher, clock):
    fetcher.batches = [
        [pixel_record(1, 1, "#FF0000", 100), pixel_record(2, 2, "#00FF00", 90)],
        [pixel_record(3, 3, "#0000FF", 200)],
    ]
    assert await service.refresh() is RefreshOutcome.REFRESHED
    assert set(service.state) == {"1,1", "2,2"}

    clock.advance(2.0)
    assert await service.refresh() is RefreshOutcome.REFRESHED
    assert set(service.state) == {"3,3"}
    assert service.is_ready


async def test_refresh_throttled_within_cooldown(service, fetcher, clock):
    await service.refresh()
    clock.advance(1.9)
    assert await service.refresh() is RefreshOutcome.THROTTLED
    assert fetcher.calls == 1


async def test_refresh_failure_leaves_state_untouched(service, fetcher, clock):
    fetcher.batches = [
        [pixel_record(1, 1, "#FF0000", 100)],
        FetchFailedError("mirror node returned 500"),
    ]
    await service.refresh()
    before = dict(service.state)

    clock.advance(5)
    with pytest.raises(FetchFailedError) as exc:
        await service.refresh()
    assert service.state == before
    assert exc.value.context.retry_after_ms == 2000


async def test_failed_refresh_still_starts_cooldown(service, fetcher, clock):
    fetcher.batches = [FetchFailedError("boom")]
    with pytest.raises(FetchFailedError):
        await service.refresh()
    assert not service.is_ready
    assert await service.refresh() is RefreshOutcome.THROTTLED


async def test_refresh_timeout_is_fetch_failure(service, fetcher):
    fetcher.gate = asyncio.Event()  # never set: fetch hangs past the timeout
    with pytest.raises(FetchFailedError, match="timed out"):
        await service.refresh()
    assert service.state == {}


async def test_concurrent_refresh_is_dropped(service, fetcher):
    fetcher.gate = asyncio.Event()
    fetcher.batches = [[pixel_record(1, 1, "#FF0000", 100)]]
    service.fetch_timeout_seconds = 5

    first = asyncio.create_task(service.refresh())
    await asyncio.sleep(0)
    assert await service.refresh() is RefreshOutcome.IN_FLIGHT

    fetcher.gate.set()
    assert await first is RefreshOutcome.REFRESHED
    assert fetcher.calls == 1
    assert "1,1" in service.state


# ==============================================================================
# Submit
# ==============================================================================


async def test_submit_sends_encoded_memo_with_fee(service, submitter):
    receipt = await service.submit_pixel(
        PixelPlacement(x=3, y=4, color="#112233"), "0.0.1001",
    )
    transfer = submitter.transfers[0]
    assert transfer.memo == 'HEDERA_PLACE_PIXEL:{"x":3,"y":4,"c":"#112233"}'
    assert [(leg.account_id, leg.amount_tinybars) for leg in transfer.legs] == [
        ("0.0.1001", -1000), ("0.0.12345", 1000),
    ]
    assert receipt.transaction_id == "0.0.1001@1"
    assert receipt.memo == transfer.memo


async def test_submit_overlays_pending_placement(service):
    await service.submit_pixel(PixelPlacement(x=3, y=4, color="#112233"), "0.0.1001")
    view = service.view()
    assert view["3,4"].color == "#112233"
    assert view["3,4"].owner == "0.0.1001"
    assert service.state == {}


async def test_pending_recorded_before_submit_resolves(service, submitter):
    seen_pending = []

    async def slow_submit(transfer):
        seen_pending.append(len(service.pending))
        return "tx"

    submitter.submit_transfer = slow_submit
    await service.submit_pixel(PixelPlacement(x=0, y=0, color="#000000"), "0.0.1001")
    assert seen_pending == [1]


async def test_failed_submit_keeps_pending_entry(service, submitter):
    submitter.error = SubmitFailedError("relay returned 500")
    with pytest.raises(SubmitFailedError):
        await service.submit_pixel(PixelPlacement(x=1, y=2, color="#ABCDEF"), "0.0.1001")
    assert "1,2" in service.view()
    assert service.discard_pending(1, 2)
    assert "1,2" not in service.view()


async def test_failed_submit_withdraws_own_entry_when_asked(service, submitter):
    await service.submit_pixel(PixelPlacement(x=1, y=2, color="#AAAAAA"), "0.0.1001")
    submitter.error = SubmitFailedError("relay returned 500")
    with pytest.raises(SubmitFailedError):
        await service.submit_pixel(
            PixelPlacement(x=1, y=2, color="#BBBBBB"), "0.0.1001",
            withdraw_on_failure=True,
        )
    assert service.view()["1,2"].color == "#AAAAAA"
    assert service.pending_count == 1


async def test_overlapping_submit_survives_earlier_failure(service, submitter):
    release = asyncio.Event()
    submitter.holds[1] = release
    submitter.failures[1] = SubmitFailedError("relay returned 500")

    first = asyncio.create_task(service.submit_pixel(
        PixelPlacement(x=3, y=4, color="#FF0000"), "0.0.1001",
        withdraw_on_failure=True,
    ))
    while not submitter.transfers:
        await asyncio.sleep(0)
    await service.submit_pixel(
        PixelPlacement(x=3, y=4, color="#00FF00"), "0.0.1001",
        withdraw_on_failure=True,
    )
    release.set()
    with pytest.raises(SubmitFailedError):
        await first

    view = service.view()
    assert view["3,4"].color == "#00FF00"
    assert service.is_pending(view["3,4"])


async def test_submit_without_payer_is_wallet_not_connected(service, submitter):
    with pytest.raises(WalletNotConnectedError):
        await service.submit_pixel(PixelPlacement(x=1, y=2, color="#ABCDEF"), None)
    assert submitter.transfers == []
    assert len(service.pending) == 0


async def test_submit_invalid_placement_sends_nothing(service, submitter):
    with pytest.raises(InvalidPlacementError):
        await service.submit_pixel(PixelPlacement(x=50, y=0, color="#ABCDEF"), "0.0.1001")
    assert submitter.transfers == []
    assert len(service.pending) == 0


async def test_local_clock_exceeds_observed_ordering_keys(service, fetcher):
    future = Decimal("2000000000.5")  # later than the fixed wall clock
    fetcher.batches = [[pixel_record(9, 9, "#FFFFFF", future)]]
    await service.refresh()
    receipt = await service.submit_pixel(
        PixelPlacement(x=9, y=9, color="#000000"), "0.0.1001",
    )
    assert receipt.pending.local_clock > future
    assert service.view()["9,9"].color == "#000000"


async def test_local_clocks_strictly_increase(service):
    a = await service.submit_pixel(PixelPlacement(x=0, y=0, color="#000000"), "0.0.1001")
    b = await service.submit_pixel(PixelPlacement(x=1, y=0, color="#000000"), "0.0.1001")
    assert b.pending.local_clock > a.pending.local_clock


# ==============================================================================
# Optimistic overlay then supersede
# ==============================================================================


async def test_confirmed_record_supersedes_pending(service, fetcher):
    await service.submit_pixel(PixelPlacement(x=3, y=4, color="#112233"), "0.0.1001")
    fetcher.batches = [[pixel_record(3, 4, "#445566", Decimal("3000000000"), owner="0.0.2002")]]
    await service.refresh()
    assert service.view()["3,4"].color == "#445566"


async def test_refresh_confirming_submission_clears_pending(service, fetcher):
    await service.submit_pixel(PixelPlacement(x=3, y=4, color="#112233"), "0.0.1001")
    fetcher.batches = [[pixel_record(3, 4, "#112233", Decimal("5"), owner="0.0.1001")]]
    await service.refresh()
    assert len(service.pending) == 0
    assert service.view()["3,4"].ordering_key == Decimal("5")


async def test_unconfirmed_pending_expires(service, clock):
    await service.submit_pixel(PixelPlacement(x=3, y=4, color="#112233"), "0.0.1001")
    clock.advance(59)
    assert "3,4" in service.view()
    clock.advance(1)
    assert "3,4" not in service.view()
