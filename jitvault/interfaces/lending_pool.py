"""Lending pool protocol — yield-bearing supply and borrow."""
from typing import Protocol

from ..models import ReserveData, UserAccountData


class LendingPool(Protocol):
    """Abstract interface for the external lending pool.

    Every mutator takes the calling principal first.
    """

    def supply(self, caller: str, asset: str, amount: int, on_behalf_of: str) -> None: ...

    def withdraw(self, caller: str, asset: str, amount: int, to: str) -> int: ...

    def borrow(self, caller: str, asset: str, amount: int, on_behalf_of: str) -> None: ...

    def repay(self, caller: str, asset: str, amount: int, on_behalf_of: str) -> int: ...

    def get_reserve_data(self, asset: str) -> ReserveData: ...

    def get_user_account_data(self, account: str) -> UserAccountData: ...
