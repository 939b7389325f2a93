"""Wires the vault, controller and in-memory services together from config."""
from __future__ import annotations

import logging

from ..clmath import MAX_TICK, get_sqrt_price_at_tick
from ..clmath.full_math import MAX_UINT256
from ..config import WAD, AppConfig
from ..controller import JitController
from ..interfaces.price_oracle import PriceOracle
from ..models import (
    BalanceDelta,
    PoolDescriptor,
    RoundData,
    SupportedAsset,
    SwapParams,
    VaultReport,
)
from ..oracles import PythOracle, StaticExchangeRates, StaticPriceOracle
from ..pricing import PriceNormalizer
from ..sim import InMemoryLendingPool, InMemoryPoolManager, InMemoryTokenBank
from ..vault import Vault

logger = logging.getLogger(__name__)

AMBIENT_LP = "ambient-lp"


class Simulator:
    """Runs deposits, redemptions and JIT-assisted swaps against in-memory services."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self.bank = InMemoryTokenBank()

        # Build price sources
        rates = StaticExchangeRates(config.oracle.static.exchange_rates)
        if config.oracle.provider == "pyth":
            self.oracle: PriceOracle = PythOracle(config.oracle.pyth)
        else:
            self.oracle = StaticPriceOracle(
                config.oracle.static.answers, config.oracle.static.decimals
            )
        self.normalizer = PriceNormalizer.from_config(config.pricing, self.oracle, rates)

        # Build lending pool with every supported reserve listed
        self.lending_pool = InMemoryLendingPool(
            self.bank,
            config.lending.address,
            config.lending.liquidation_threshold_bps,
            valuer=self.normalizer.to_common_unit,
        )
        for asset in SupportedAsset:
            self.lending_pool.list_reserve(asset.value)

        self.vault = Vault(
            config.vault.address,
            config.vault.authority,
            self.lending_pool,
            self.bank,
            self.normalizer,
            SupportedAsset.parse(config.vault.base_asset),
        )

        # Build pool engine and register the controller as its hook
        self.pool_manager = InMemoryPoolManager(self.bank, config.pool.address)
        self.controller = JitController(
            self.vault,
            self.pool_manager,
            config.vault.authority,
            config.vault.leverage_bps,
        )
        self.pool_manager.register_hooks(config.vault.authority, self.controller)
        self.key = PoolDescriptor(
            currency0=config.pool.currency0,
            currency1=config.pool.currency1,
            fee=config.pool.fee,
            tick_spacing=config.pool.tick_spacing,
            hooks=config.vault.authority,
        )
        self.pool_manager.initialize(self.key, get_sqrt_price_at_tick(config.pool.tick))
        if config.pool.ambient_liquidity:
            self.add_ambient_liquidity(config.pool.ambient_liquidity)

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def add_ambient_liquidity(self, liquidity: int) -> BalanceDelta:
        """Provide full-range liquidity from a standing LP account."""
        spacing = self.key.tick_spacing
        tick_upper = (MAX_TICK // spacing) * spacing
        delta = self.pool_manager.modify_liquidity(
            AMBIENT_LP, self.key, -tick_upper, tick_upper, liquidity
        )
        self.bank.mint(self.key.currency0, AMBIENT_LP, max(-delta.amount0, 0))
        self.bank.mint(self.key.currency1, AMBIENT_LP, max(-delta.amount1, 0))
        self.pool_manager.settle_all(AMBIENT_LP)
        logger.info("Seeded %d ambient liquidity", liquidity)
        return delta

    async def refresh_prices(self) -> dict[str, RoundData]:
        """Fetch live prices when the oracle is remote; otherwise read the static feeds."""
        if isinstance(self.oracle, PythOracle):
            return await self.oracle.refresh()
        return {
            feed: self.oracle.latest_answer(feed)
            for feed in self._config.oracle.static.answers
        }

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def deposit(self, account: str, amount: int) -> int:
        """Fund ``account`` with ``amount`` of the base asset and deposit it."""
        self.bank.mint(self.vault.base_asset.value, account, amount)
        return self.vault.deposit(account, amount, account)

    def redeem(self, account: str, shares: int | None = None) -> int:
        """Redeem ``shares`` (default: all of them) back to ``account``."""
        if shares is None:
            shares = self.vault.balance_of(account)
        return self.vault.redeem(account, shares, account, account)

    def swap(self, trader: str, amount_in: int, zero_for_one: bool = True) -> BalanceDelta:
        """Exact-input swap of ``amount_in``; the trader is funded first."""
        currency_in = self.key.currency0 if zero_for_one else self.key.currency1
        self.bank.mint(currency_in, trader, amount_in)
        params = SwapParams(zero_for_one=zero_for_one, amount_specified=-amount_in)
        return self.pool_manager.swap(trader, self.key, params)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def report(self) -> VaultReport:
        return self.vault.report()

    def log_report(self, report: VaultReport | None = None) -> VaultReport:
        report = report or self.report()
        _, tick = self.pool_manager.get_slot0(self.key)
        logger.info("=" * 60)
        logger.info("Vault %s (base %s)", self.vault.address, self.vault.base_asset.value)
        logger.info("  Total assets: %.6f", report.total_assets / WAD)
        logger.info("  Share supply: %.6f", report.total_supply / WAD)
        if report.health_factor == MAX_UINT256:
            logger.info("  Health factor: no debt")
        else:
            logger.info("  Health factor: %.4f", report.health_factor / WAD)
        for reserve in report.reserves:
            if not (reserve.supplied or reserve.borrowed):
                continue
            logger.info(
                "  %-7s supplied %.6f  borrowed %.6f  value %.6f",
                reserve.asset,
                reserve.supplied / WAD,
                reserve.borrowed / WAD,
                reserve.value / WAD,
            )
        logger.info(
            "Pool %s/%s: tick %d, liquidity %d",
            self.key.currency0, self.key.currency1, tick,
            self.pool_manager.get_liquidity(self.key),
        )
        logger.info("=" * 60)
        return report
