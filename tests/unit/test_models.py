"""Unit tests for data models."""
from __future__ import annotations

import pytest

from jitvault.errors import UnsupportedAsset
from jitvault.models import (
    AFTER_SWAP_NOOP,
    BEFORE_SWAP_NOOP,
    AssetLedgerEntry,
    BalanceDelta,
    CycleState,
    LiquidityCaps,
    PoolDescriptor,
    SupportedAsset,
    SwapCycle,
    SwapParams,
    asset_id,
)


class TestSupportedAsset:
    def test_exactly_four_members(self) -> None:
        assert [a.value for a in SupportedAsset] == ["WETH", "WSTETH", "RETH", "CBETH"]

    def test_parse_is_case_insensitive(self) -> None:
        assert SupportedAsset.parse("wsteth") is SupportedAsset.WSTETH

    def test_parse_passes_members_through(self) -> None:
        assert SupportedAsset.parse(SupportedAsset.RETH) is SupportedAsset.RETH

    def test_parse_unknown_raises(self) -> None:
        with pytest.raises(UnsupportedAsset, match="DAI"):
            SupportedAsset.parse("DAI")

    def test_is_supported(self) -> None:
        assert SupportedAsset.is_supported("CBETH")
        assert not SupportedAsset.is_supported("USDC")

    def test_asset_id(self) -> None:
        assert asset_id(SupportedAsset.WETH) == "WETH"
        assert asset_id("aWETH") == "aWETH"


class TestAssetLedgerEntry:
    def test_defaults(self) -> None:
        entry = AssetLedgerEntry(asset=SupportedAsset.WETH)
        assert entry.supplied == 0
        assert entry.borrowed == 0

    def test_frozen(self) -> None:
        entry = AssetLedgerEntry(asset=SupportedAsset.WETH)
        with pytest.raises(AttributeError):
            entry.supplied = 5  # type: ignore[misc]


class TestSwapModels:
    def test_exact_input_sign(self) -> None:
        assert SwapParams(zero_for_one=True, amount_specified=-1).exact_input
        assert not SwapParams(zero_for_one=True, amount_specified=1).exact_input

    def test_balance_delta_addition(self) -> None:
        assert BalanceDelta(-3, 5) + BalanceDelta(1, -2) == BalanceDelta(-2, 3)

    def test_pool_descriptor_hashable(self) -> None:
        key = PoolDescriptor("RETH", "WETH", 500, 10)
        assert {key: 1}[PoolDescriptor("RETH", "WETH", 500, 10)] == 1

    def test_noop_sentinels(self) -> None:
        assert BEFORE_SWAP_NOOP.selector == "before_swap"
        assert AFTER_SWAP_NOOP.selector == "after_swap"
        for result in (BEFORE_SWAP_NOOP, AFTER_SWAP_NOOP):
            assert result.delta == BalanceDelta()
            assert result.fee_override == 0

    def test_caps_is_zero(self) -> None:
        assert LiquidityCaps(0, 0, 7).is_zero
        assert not LiquidityCaps(1, 0, 0).is_zero


class TestSwapCycle:
    def test_starts_idle_and_inactive(self) -> None:
        cycle = SwapCycle()
        assert cycle.state is CycleState.IDLE
        assert not cycle.is_active

    def test_record_then_clear(self) -> None:
        cycle = SwapCycle()
        cycle.record(-20, -10, 1234)
        assert cycle.state is CycleState.INJECTED
        assert cycle.is_active
        assert (cycle.tick_lower, cycle.tick_upper, cycle.liquidity) == (-20, -10, 1234)

        cycle.clear()
        assert cycle == SwapCycle()

    def test_cycles_are_independent(self) -> None:
        first, second = SwapCycle(), SwapCycle()
        first.record(0, 10, 1)
        assert not second.is_active
