"""Vault accounting: shares, NAV and proportional multi-asset exits.

Shares are fungible claims on NAV (``total_assets``), the common-unit value of
everything supplied to the lending pool minus debt. Deposits come in as the
base asset; exits are paid out of every supported asset in proportion to its
share of the vault's value.
"""
from __future__ import annotations

import logging
from collections import defaultdict

from .clmath.full_math import MAX_UINT256
from .errors import InsufficientAllowance, InsufficientBalance, ZeroAssets
from .interfaces.lending_pool import LendingPool
from .interfaces.token_bank import TokenBank
from .ledger import AssetLedger
from .models import AssetLedgerEntry, AssetReserve, SupportedAsset, VaultReport
from .pricing import PriceNormalizer

logger = logging.getLogger(__name__)


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


class Vault:
    """Pooled, yield-bearing vault backing JIT liquidity."""

    def __init__(
        self,
        address: str,
        authority: str,
        lending_pool: LendingPool,
        tokens: TokenBank,
        normalizer: PriceNormalizer,
        base_asset: SupportedAsset = SupportedAsset.WETH,
    ) -> None:
        self.address = address
        self.base_asset = SupportedAsset.parse(base_asset)
        self._pool = lending_pool
        self._tokens = tokens
        self._normalizer = normalizer
        self.ledger = AssetLedger(address, authority, lending_pool, tokens, normalizer)
        self._total_supply = 0
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)

    # ------------------------------------------------------------------
    # Share token
    # ------------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def authority(self) -> str:
        return self.ledger.authority

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, caller: str, spender: str, shares: int) -> None:
        self._allowances[(caller, spender)] = shares

    def transfer(self, caller: str, recipient: str, shares: int) -> None:
        self._move(caller, recipient, shares)

    def _move(self, sender: str, recipient: str, shares: int) -> None:
        balance = self.balance_of(sender)
        if shares > balance:
            raise InsufficientBalance("shares", sender, balance, shares)
        self._balances[sender] = balance - shares
        self._balances[recipient] += shares

    def _mint(self, recipient: str, shares: int) -> None:
        self._total_supply += shares
        self._balances[recipient] += shares

    def _burn(self, owner: str, shares: int) -> None:
        balance = self.balance_of(owner)
        if shares > balance:
            raise InsufficientBalance("shares", owner, balance, shares)
        self._balances[owner] = balance - shares
        self._total_supply -= shares

    def _spend_allowance(self, owner: str, spender: str, shares: int) -> None:
        if owner == spender:
            return
        allowed = self.allowance(owner, spender)
        if allowed == MAX_UINT256:
            return
        if shares > allowed:
            raise InsufficientAllowance(
                f"{spender} may spend {allowed} of {owner}'s shares, {shares} required"
            )
        self._allowances[(owner, spender)] = allowed - shares

    # ------------------------------------------------------------------
    # Accounting
    # ------------------------------------------------------------------

    def total_assets(self) -> int:
        return self.ledger.total_value()

    def convert_to_shares(self, assets: int) -> int:
        supply = self._total_supply
        nav = self.total_assets()
        if supply == 0 or nav <= 0:
            return assets
        return assets * supply // nav

    def convert_to_assets(self, shares: int) -> int:
        supply = self._total_supply
        if supply == 0:
            return shares
        return shares * self.total_assets() // supply

    def preview_deposit(self, assets: int) -> int:
        return self.convert_to_shares(assets)

    def preview_mint(self, shares: int) -> int:
        supply = self._total_supply
        nav = self.total_assets()
        if supply == 0 or nav <= 0:
            return shares
        return _ceil_div(shares * nav, supply)

    def preview_withdraw(self, assets: int) -> int:
        supply = self._total_supply
        nav = self.total_assets()
        if supply == 0 or nav <= 0:
            return assets
        return _ceil_div(assets * supply, nav)

    def preview_redeem(self, shares: int) -> int:
        return self.convert_to_assets(shares)

    def max_withdraw(self, owner: str) -> int:
        return self.convert_to_assets(self.balance_of(owner))

    def max_redeem(self, owner: str) -> int:
        return self.balance_of(owner)

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def deposit(self, caller: str, amount: int, recipient: str) -> int:
        """Take ``amount`` of the base asset from ``caller`` and mint shares."""
        shares = self.preview_deposit(amount)
        self._enter(caller, amount, shares, recipient)
        return shares

    def mint(self, caller: str, shares: int, recipient: str) -> int:
        """Mint exactly ``shares`` for however much base asset they cost."""
        amount = self.preview_mint(shares)
        self._enter(caller, amount, shares, recipient)
        return amount

    def _enter(self, caller: str, amount: int, shares: int, recipient: str) -> None:
        self._tokens.transfer(self.base_asset.value, caller, self.address, amount)
        self._mint(recipient, shares)
        # No idle float: everything on hand goes to the lending pool.
        self.ledger._supply(self.base_asset)
        logger.info(
            "Deposit %d %s from %s -> %d shares to %s",
            amount, self.base_asset.value, caller, shares, recipient,
        )

    # ------------------------------------------------------------------
    # Exit
    # ------------------------------------------------------------------

    def withdraw(self, caller: str, amount: int, receiver: str, owner: str) -> int:
        """Pay out ``amount`` common units across all assets; returns shares burned."""
        shares = self.preview_withdraw(amount)
        self._spend_allowance(owner, caller, shares)
        self._burn(owner, shares)
        self._distribute(amount, receiver)
        logger.info("Withdraw %d for %s -> %d shares burned", amount, owner, shares)
        return shares

    def redeem(self, caller: str, shares: int, receiver: str, owner: str) -> int:
        """Burn ``shares`` and pay out their value across all assets."""
        amount = self.preview_redeem(shares)
        if amount == 0:
            raise ZeroAssets(f"Redeeming {shares} shares yields no assets")
        self._spend_allowance(owner, caller, shares)
        self._burn(owner, shares)
        self._distribute(amount, receiver)
        logger.info("Redeem %d shares for %s -> %d assets", shares, owner, amount)
        return amount

    def _distribute(self, amount: int, receiver: str) -> dict[SupportedAsset, int]:
        """Withdraw each asset's proportional slice of ``amount`` to ``receiver``.

        Shares are already burned when this runs.
        """
        values = self.ledger.asset_values()
        gross = sum(values.values())
        paid: dict[SupportedAsset, int] = {}
        if gross == 0:
            return paid
        for asset, value in values.items():
            slice_value = amount * value // gross
            native = self._normalizer.from_common_unit(asset, slice_value)
            if native == 0:
                continue
            paid[asset] = self.ledger._withdraw_to(asset, native, receiver)
        return paid

    # ------------------------------------------------------------------
    # Ledger surface
    # ------------------------------------------------------------------

    def reserves(self, asset: str | SupportedAsset) -> int:
        return self.ledger.reserves(asset)

    def supply_to_ledger(self, caller: str, asset: str | SupportedAsset) -> int:
        return self.ledger.supply(caller, asset)

    def borrow_from_ledger(self, caller: str, asset: str | SupportedAsset, amount: int) -> None:
        self.ledger.borrow(caller, asset, amount)

    def repay_to_ledger(self, caller: str, asset: str | SupportedAsset, amount: int) -> int:
        return self.ledger.repay(caller, asset, amount)

    def withdraw_from_ledger(self, caller: str, asset: str | SupportedAsset, amount: int) -> int:
        return self.ledger.withdraw(caller, asset, amount)

    def transfer_authority(self, caller: str, new_authority: str) -> None:
        self.ledger.transfer_authority(caller, new_authority)

    def health_factor(self) -> int:
        return self._pool.get_user_account_data(self.address).health_factor

    def report(self) -> VaultReport:
        entries: list[AssetLedgerEntry] = list(self.ledger.entries())
        values = self.ledger.asset_values()
        return VaultReport(
            total_assets=self.total_assets(),
            total_supply=self._total_supply,
            health_factor=self.health_factor(),
            reserves=tuple(
                AssetReserve(
                    asset=entry.asset.value,
                    supplied=entry.supplied,
                    borrowed=entry.borrowed,
                    value=values[entry.asset],
                )
                for entry in entries
            ),
        )
