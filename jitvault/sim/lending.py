"""Lending pool with yield-token balances, variable debt and health factor."""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable

from ..clmath.full_math import MAX_UINT256
from ..config import BPS, WAD
from ..errors import InsufficientBalance
from ..interfaces.token_bank import TokenBank
from ..models import ReserveData, UserAccountData, asset_id

logger = logging.getLogger(__name__)

Valuer = Callable[[str, int], int]


def calc_health_factor(
    total_collateral: int, total_debt: int, liquidation_threshold_bps: int
) -> int:
    """Calculate health factor in WAD.

    health_factor = (collateral * liquidation_threshold) / debt
    An account without debt reports ``MAX_UINT256``.
    """
    if total_debt <= 0:
        return MAX_UINT256
    return total_collateral * liquidation_threshold_bps * WAD // (BPS * total_debt)


class InMemoryLendingPool:
    """Supply/borrow pool backed by a token bank.

    Supplying mints ``a<ASSET>`` yield tokens 1:1 to the beneficiary; yield is
    simulated by minting more of them (``accrue_yield``).
    """

    def __init__(
        self,
        bank: TokenBank,
        address: str = "lending-pool",
        liquidation_threshold_bps: int = 8_000,
        valuer: Valuer | None = None,
    ) -> None:
        self._bank = bank
        self.address = address
        self._threshold_bps = liquidation_threshold_bps
        self._valuer = valuer
        self._reserves: dict[str, ReserveData] = {}
        self._debts: dict[tuple[str, str], int] = defaultdict(int)
        self._suppliers: dict[str, set[str]] = defaultdict(set)

    def list_reserve(self, asset: str) -> ReserveData:
        asset = asset_id(asset)
        if asset not in self._reserves:
            self._reserves[asset] = ReserveData(asset=asset, yield_token=f"a{asset}")
        return self._reserves[asset]

    def get_reserve_data(self, asset: str) -> ReserveData:
        try:
            return self._reserves[asset_id(asset)]
        except KeyError:
            raise ValueError(f"Reserve {asset_id(asset)} is not listed") from None

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def supply(self, caller: str, asset: str, amount: int, on_behalf_of: str) -> None:
        reserve = self.get_reserve_data(asset)
        self._bank.transfer(reserve.asset, caller, self.address, amount)
        self._bank.mint(reserve.yield_token, on_behalf_of, amount)
        self._suppliers[reserve.asset].add(on_behalf_of)

    def withdraw(self, caller: str, asset: str, amount: int, to: str) -> int:
        reserve = self.get_reserve_data(asset)
        balance = self._bank.balance_of(reserve.yield_token, caller)
        if amount == MAX_UINT256:
            amount = balance
        if amount > balance:
            raise InsufficientBalance(reserve.yield_token, caller, balance, amount)
        self._bank.burn(reserve.yield_token, caller, amount)
        self._bank.transfer(reserve.asset, self.address, to, amount)
        return amount

    def borrow(self, caller: str, asset: str, amount: int, on_behalf_of: str) -> None:
        reserve = self.get_reserve_data(asset)
        self._bank.transfer(reserve.asset, self.address, caller, amount)
        self._debts[(reserve.asset, on_behalf_of)] += amount

    def repay(self, caller: str, asset: str, amount: int, on_behalf_of: str) -> int:
        reserve = self.get_reserve_data(asset)
        owed = self._debts[(reserve.asset, on_behalf_of)]
        paid = min(amount, owed)
        self._bank.transfer(reserve.asset, caller, self.address, paid)
        self._debts[(reserve.asset, on_behalf_of)] = owed - paid
        return paid

    def accrue_yield(self, asset: str, rate_bps: int) -> None:
        """Grow every supplier's yield-token balance by ``rate_bps``."""
        reserve = self.get_reserve_data(asset)
        total = 0
        for holder in self._suppliers[reserve.asset]:
            interest = self._bank.balance_of(reserve.yield_token, holder) * rate_bps // BPS
            self._bank.mint(reserve.yield_token, holder, interest)
            total += interest
        # Borrower interest is not modelled; back the new claims directly.
        self._bank.mint(reserve.asset, self.address, total)
        logger.info("Accrued %d %s of yield (%d bps)", total, reserve.asset, rate_bps)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def debt_of(self, asset: str, account: str) -> int:
        return self._debts.get((asset_id(asset), account), 0)

    def _value(self, asset: str, amount: int) -> int:
        if self._valuer is None or amount == 0:
            return amount
        return self._valuer(asset, amount)

    def get_user_account_data(self, account: str) -> UserAccountData:
        total_collateral = 0
        total_debt = 0
        for asset, reserve in self._reserves.items():
            total_collateral += self._value(
                asset, self._bank.balance_of(reserve.yield_token, account)
            )
            total_debt += self._value(asset, self.debt_of(asset, account))
        return UserAccountData(
            total_collateral=total_collateral,
            total_debt=total_debt,
            health_factor=calc_health_factor(
                total_collateral, total_debt, self._threshold_bps
            ),
        )
