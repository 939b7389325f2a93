"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from jitvault.config import WAD, PricingConfig, PricingRouteConfig
from jitvault.controller import JitController
from jitvault.models import PoolDescriptor, SupportedAsset
from jitvault.oracles import StaticExchangeRates, StaticPriceOracle
from jitvault.pricing import PriceNormalizer
from jitvault.sim import InMemoryLendingPool, InMemoryPoolManager, InMemoryTokenBank
from jitvault.vault import Vault

VAULT = "vault"
AUTHORITY = "jit-hook"

# ---------------------------------------------------------------------------
# Price fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def pricing_config() -> PricingConfig:
    return PricingConfig(
        routes={
            "WETH": PricingRouteConfig(kind="base"),
            "WSTETH": PricingRouteConfig(kind="wrapped", underlying="WETH"),
            "RETH": PricingRouteConfig(kind="wrapped", underlying="WETH"),
            "CBETH": PricingRouteConfig(kind="feed", feed="CBETH/ETH"),
        }
    )


@pytest.fixture()
def oracle() -> StaticPriceOracle:
    return StaticPriceOracle({"CBETH/ETH": 105 * 10**16}, {"CBETH/ETH": 18})


@pytest.fixture()
def rates() -> StaticExchangeRates:
    return StaticExchangeRates({"WSTETH": 12 * 10**17, "RETH": 11 * 10**17})


@pytest.fixture()
def normalizer(
    pricing_config: PricingConfig,
    oracle: StaticPriceOracle,
    rates: StaticExchangeRates,
) -> PriceNormalizer:
    return PriceNormalizer.from_config(pricing_config, oracle, rates)


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def bank() -> InMemoryTokenBank:
    return InMemoryTokenBank()


@pytest.fixture()
def lending_pool(
    bank: InMemoryTokenBank, normalizer: PriceNormalizer
) -> InMemoryLendingPool:
    pool = InMemoryLendingPool(bank, valuer=normalizer.to_common_unit)
    for asset in SupportedAsset:
        pool.list_reserve(asset.value)
    return pool


@pytest.fixture()
def vault(
    bank: InMemoryTokenBank,
    lending_pool: InMemoryLendingPool,
    normalizer: PriceNormalizer,
) -> Vault:
    return Vault(VAULT, AUTHORITY, lending_pool, bank, normalizer)


@pytest.fixture()
def pool_manager(bank: InMemoryTokenBank) -> InMemoryPoolManager:
    return InMemoryPoolManager(bank)


@pytest.fixture()
def controller(vault: Vault, pool_manager: InMemoryPoolManager) -> JitController:
    hook = JitController(vault, pool_manager, AUTHORITY)
    pool_manager.register_hooks(AUTHORITY, hook)
    return hook


@pytest.fixture()
def pool_key() -> PoolDescriptor:
    return PoolDescriptor(
        currency0="RETH", currency1="WETH", fee=3000, tick_spacing=10, hooks=AUTHORITY
    )


@pytest.fixture()
def funded(bank: InMemoryTokenBank):
    """Mint helper: ``funded(asset, account, whole_units)``."""

    def _fund(asset: str, account: str, units: int) -> int:
        amount = units * WAD
        bank.mint(asset, account, amount)
        return amount

    return _fund


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    vault:
      address: vault
      authority: jit-hook
      base_asset: WETH
      leverage_bps: 20000
    pricing:
      WETH: {kind: base}
      WSTETH: {kind: wrapped, underlying: WETH}
      RETH: {kind: wrapped, underlying: WETH}
      CBETH: {kind: feed, feed: CBETH/ETH}
    oracle:
      provider: static
      static:
        answers: {CBETH/ETH: 1050000000000000000}
        decimals: {CBETH/ETH: 18}
        exchange_rates: {WSTETH: 1200000000000000000, RETH: 1100000000000000000}
      pyth:
        hermes_url: "https://hermes.example.com"
        quote: ETH
        feeds: {ETH: "eee", CBETH/ETH: "ccc"}
    lending:
      liquidation_threshold_bps: 8000
    pool:
      currency0: RETH
      currency1: WETH
      fee: 500
      tick_spacing: 10
      tick: 953
      ambient_liquidity: "1000"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
