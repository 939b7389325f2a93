"""The vault's positions in the external lending pool."""
from __future__ import annotations

import logging
from dataclasses import replace

from .errors import Unauthorized
from .interfaces.lending_pool import LendingPool
from .interfaces.token_bank import TokenBank
from .models import AssetLedgerEntry, SupportedAsset
from .pricing import PriceNormalizer

logger = logging.getLogger(__name__)


class AssetLedger:
    """Per-asset supply/borrow bookkeeping for one holder account.

    Public mutations are accepted only from a single designated authority,
    which can hand its role to another principal. The owning vault moves its
    own deposits and exits through the unchecked ``_supply`` and
    ``_withdraw_to``.
    """

    def __init__(
        self,
        holder: str,
        authority: str,
        lending_pool: LendingPool,
        tokens: TokenBank,
        normalizer: PriceNormalizer,
    ) -> None:
        self.holder = holder
        self._authority = authority
        self._pool = lending_pool
        self._tokens = tokens
        self._normalizer = normalizer
        self._entries: dict[SupportedAsset, AssetLedgerEntry] = {
            asset: AssetLedgerEntry(asset=asset) for asset in SupportedAsset
        }

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    @property
    def authority(self) -> str:
        return self._authority

    def _require_authority(self, caller: str) -> None:
        if caller != self._authority:
            raise Unauthorized(caller)

    def transfer_authority(self, caller: str, new_authority: str) -> None:
        if caller != self._authority:
            raise Unauthorized(caller)
        logger.info("Ledger authority %s -> %s", self._authority, new_authority)
        self._authority = new_authority

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def entry(self, asset: str | SupportedAsset) -> AssetLedgerEntry:
        return self._entries[SupportedAsset.parse(asset)]

    def entries(self) -> tuple[AssetLedgerEntry, ...]:
        return tuple(self._entries.values())

    def reserves(self, asset: str | SupportedAsset) -> int:
        """Yield-token balance the holder currently has supplied for ``asset``."""
        asset = SupportedAsset.parse(asset)
        reserve = self._pool.get_reserve_data(asset.value)
        return self._tokens.balance_of(reserve.yield_token, self.holder)

    def debt(self, asset: str | SupportedAsset) -> int:
        return self.entry(asset).borrowed

    def on_hand(self, asset: str | SupportedAsset) -> int:
        return self._tokens.balance_of(SupportedAsset.parse(asset).value, self.holder)

    def asset_values(self) -> dict[SupportedAsset, int]:
        """Common-unit value of each asset's reserves."""
        return {
            asset: self._normalizer.to_common_unit(asset, self.reserves(asset))
            for asset in SupportedAsset
        }

    def gross_value(self) -> int:
        return sum(self.asset_values().values())

    def total_value(self) -> int:
        """Reserves minus outstanding debt, both valued in the common unit."""
        debt = sum(
            self._normalizer.to_common_unit(entry.asset, entry.borrowed)
            for entry in self._entries.values()
            if entry.borrowed
        )
        return self.gross_value() - debt

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _sync(self, asset: SupportedAsset, borrowed_delta: int = 0) -> AssetLedgerEntry:
        entry = self._entries[asset]
        entry = replace(
            entry,
            supplied=self.reserves(asset),
            borrowed=entry.borrowed + borrowed_delta,
        )
        self._entries[asset] = entry
        return entry

    def supply(self, caller: str, asset: str | SupportedAsset) -> int:
        """Move the holder's entire on-hand balance of ``asset`` into the pool."""
        self._require_authority(caller)
        return self._supply(asset)

    def _supply(self, asset: str | SupportedAsset) -> int:
        asset = SupportedAsset.parse(asset)
        amount = self.on_hand(asset)
        if amount == 0:
            return 0
        self._pool.supply(self.holder, asset.value, amount, self.holder)
        entry = self._sync(asset)
        logger.info("Supplied %d %s (reserves %d)", amount, asset.value, entry.supplied)
        return amount

    def borrow(self, caller: str, asset: str | SupportedAsset, amount: int) -> None:
        """Borrow ``amount`` against the holder's reserves; proceeds go to the authority."""
        self._require_authority(caller)
        asset = SupportedAsset.parse(asset)
        if amount == 0:
            return
        self._pool.borrow(self.holder, asset.value, amount, self.holder)
        self._tokens.transfer(asset.value, self.holder, self._authority, amount)
        entry = self._sync(asset, borrowed_delta=amount)
        logger.info("Borrowed %d %s (debt %d)", amount, asset.value, entry.borrowed)

    def repay(self, caller: str, asset: str | SupportedAsset, amount: int) -> int:
        """Repay up to ``amount`` of debt with funds pulled from the authority."""
        self._require_authority(caller)
        asset = SupportedAsset.parse(asset)
        amount = min(amount, self._entries[asset].borrowed)
        if amount == 0:
            return 0
        self._tokens.transfer(asset.value, self._authority, self.holder, amount)
        repaid = self._pool.repay(self.holder, asset.value, amount, self.holder)
        entry = self._sync(asset, borrowed_delta=-repaid)
        logger.info("Repaid %d %s (debt %d)", repaid, asset.value, entry.borrowed)
        return repaid

    def withdraw(
        self,
        caller: str,
        asset: str | SupportedAsset,
        amount: int,
        to: str | None = None,
    ) -> int:
        """Pull ``amount`` out of the pool straight to ``to`` (default: the authority)."""
        self._require_authority(caller)
        return self._withdraw_to(asset, amount, to or self._authority)

    def _withdraw_to(self, asset: str | SupportedAsset, amount: int, recipient: str) -> int:
        asset = SupportedAsset.parse(asset)
        if amount == 0:
            return 0
        withdrawn = self._pool.withdraw(self.holder, asset.value, amount, recipient)
        entry = self._sync(asset)
        logger.info(
            "Withdrew %d %s to %s (reserves %d)",
            withdrawn, asset.value, recipient, entry.supplied,
        )
        return withdrawn
