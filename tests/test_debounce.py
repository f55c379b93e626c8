import asyncio

import pytest

from ewebridge.utils.debounce import SettleGate, SuppressionWindow


@pytest.mark.asyncio
async def test_settle_gate_only_last_claim_survives() -> None:
    gate = SettleGate(0.03, name="test")

    results = await asyncio.gather(gate.settle(), gate.settle(), gate.settle())

    assert results[0] is None
    assert results[1] is None
    assert results[2] is not None
    assert results[2].is_current
    assert gate.superseded == 2


@pytest.mark.asyncio
async def test_settle_gate_sequential_edits_all_survive() -> None:
    gate = SettleGate(0.01)

    first = await gate.settle()
    second = await gate.settle()

    assert first is not None
    assert second is not None
    assert gate.superseded == 0


def test_settle_gate_cancel_invalidates_token() -> None:
    gate = SettleGate(0.5)
    token = gate.claim()
    assert token.is_current

    gate.cancel()

    assert not token.is_current


def test_settle_gate_negative_delay_clamped() -> None:
    assert SettleGate(-1).delay_s == 0.0


@pytest.mark.asyncio
async def test_suppression_window_expires() -> None:
    window = SuppressionWindow(0.05)
    assert not window.active

    window.arm()
    assert window.active

    await asyncio.sleep(0.1)
    assert not window.active


@pytest.mark.asyncio
async def test_suppression_window_rearm_extends() -> None:
    window = SuppressionWindow(0.1)

    window.arm()
    await asyncio.sleep(0.06)
    window.arm()
    await asyncio.sleep(0.06)
    # 120ms after the first arm, 60ms after the second.
    assert window.active

    await asyncio.sleep(0.1)
    assert not window.active


@pytest.mark.asyncio
async def test_suppression_window_close() -> None:
    window = SuppressionWindow(10)
    window.arm()

    window.close()

    assert not window.active
    assert window._timer is None
