"""Price oracle protocols — price feed and wrapped-asset rate abstractions."""
from typing import Protocol

from ..models import RoundData


class PriceOracle(Protocol):
    """Abstract interface for reading the latest price of a feed."""

    def latest_answer(self, feed: str) -> RoundData: ...

    def decimals(self, feed: str) -> int: ...


class ExchangeRateSource(Protocol):
    """Underlying units per 1e18 units of a wrapped asset."""

    def exchange_rate(self, asset: str) -> int: ...
