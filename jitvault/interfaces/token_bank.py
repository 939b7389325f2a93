"""Token bank protocol."""
from typing import Protocol


class TokenBank(Protocol):
    """Abstract interface for holding and moving fungible assets."""

    def balance_of(self, asset: str, account: str) -> int: ...

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None: ...
