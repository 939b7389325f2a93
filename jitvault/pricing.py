"""Price normalizer — values supported assets in the common (base-asset) unit."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from .config import WAD, PricingConfig
from .errors import InvalidOracleAnswer
from .interfaces.price_oracle import ExchangeRateSource, PriceOracle
from .models import SupportedAsset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricingRoute:
    """How one asset reaches the common unit.

    ``kind`` is ``base`` (identity), ``feed`` (direct price feed) or
    ``wrapped`` (exchange rate into ``underlying``, then the underlying's feed).
    An empty ``feed`` on a wrapped route means the underlying is the base asset.
    """

    kind: str
    feed: str = ""


class PriceNormalizer:
    """Convert asset amounts to and from the common accounting unit.

    Oracle answers are trusted as-is: there is no staleness or deviation
    window, only a positivity check.
    """

    def __init__(
        self,
        oracle: PriceOracle,
        routes: Mapping[SupportedAsset, PricingRoute],
        rates: ExchangeRateSource | None = None,
    ) -> None:
        self._oracle = oracle
        self._rates = rates
        self._routes = dict(routes)
        missing = [a.value for a in SupportedAsset if a not in self._routes]
        if missing:
            raise ValueError(f"No pricing route for {', '.join(missing)}")
        if any(r.kind == "wrapped" for r in self._routes.values()) and rates is None:
            raise ValueError("Wrapped assets require an exchange-rate source")

    @classmethod
    def from_config(
        cls,
        config: PricingConfig,
        oracle: PriceOracle,
        rates: ExchangeRateSource | None = None,
    ) -> PriceNormalizer:
        routes: dict[SupportedAsset, PricingRoute] = {}
        for name, route in config.routes.items():
            asset = SupportedAsset.parse(name)
            if route.kind == "wrapped":
                underlying = config.routes.get(route.underlying.upper())
                if underlying is not None and underlying.kind == "base":
                    feed = ""
                elif route.feed:
                    feed = route.feed
                elif underlying is not None and underlying.kind == "feed":
                    # Reuse the underlying's own feed.
                    feed = underlying.feed or route.underlying.upper()
                else:
                    feed = route.underlying
            elif route.kind == "feed":
                feed = route.feed or asset.value
            else:
                feed = ""
            routes[asset] = PricingRoute(kind=route.kind, feed=feed)
        return cls(oracle, routes, rates)

    # ------------------------------------------------------------------
    # Feed reads
    # ------------------------------------------------------------------

    def _price(self, feed: str) -> tuple[int, int]:
        round_data = self._oracle.latest_answer(feed)
        if round_data.answer <= 0:
            raise InvalidOracleAnswer(feed, round_data.answer)
        return round_data.answer, 10 ** self._oracle.decimals(feed)

    def _rate(self, asset: SupportedAsset) -> int:
        rate = self._rates.exchange_rate(asset.value)  # type: ignore[union-attr]
        if rate <= 0:
            raise InvalidOracleAnswer(f"{asset.value} exchange rate", rate)
        return rate

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def to_common_unit(self, asset: str | SupportedAsset, amount: int) -> int:
        """Value ``amount`` of ``asset`` in the common unit (floor-rounded)."""
        asset = SupportedAsset.parse(asset)
        route = self._routes[asset]
        if amount == 0 or route.kind == "base":
            return amount

        if route.kind == "wrapped":
            amount = amount * self._rate(asset) // WAD
            if not route.feed:
                return amount

        answer, scale = self._price(route.feed)
        return amount * answer // scale

    def from_common_unit(self, asset: str | SupportedAsset, value: int) -> int:
        """Native amount of ``asset`` worth ``value`` common units (floor-rounded)."""
        asset = SupportedAsset.parse(asset)
        route = self._routes[asset]
        if value == 0 or route.kind == "base":
            return value

        amount = value
        if route.feed:
            answer, scale = self._price(route.feed)
            amount = value * scale // answer
        if route.kind == "wrapped":
            amount = amount * WAD // self._rate(asset)
        return amount
