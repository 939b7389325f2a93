"""Fungible balances keyed by (asset, account)."""
from __future__ import annotations

import logging
from collections import defaultdict

from ..errors import InsufficientBalance
from ..models import asset_id

logger = logging.getLogger(__name__)


class InMemoryTokenBank:
    """Plain balance book; amounts are non-negative integers."""

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = defaultdict(int)

    def balance_of(self, asset: str, account: str) -> int:
        return self._balances.get((asset_id(asset), account), 0)

    def mint(self, asset: str, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("mint amount must be non-negative")
        self._balances[(asset_id(asset), account)] += amount

    def burn(self, asset: str, account: str, amount: int) -> None:
        balance = self.balance_of(asset, account)
        if amount > balance:
            raise InsufficientBalance(asset_id(asset), account, balance, amount)
        self._balances[(asset_id(asset), account)] = balance - amount

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("transfer amount must be non-negative")
        if amount == 0:
            return
        self.burn(asset, sender, amount)
        self._balances[(asset_id(asset), recipient)] += amount
        logger.debug("transfer %d %s %s -> %s", amount, asset, sender, recipient)

    def total_supply(self, asset: str) -> int:
        return sum(v for (a, _), v in self._balances.items() if a == asset_id(asset))
