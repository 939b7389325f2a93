"""In-memory price feeds and exchange rates with fixed, settable answers."""
from __future__ import annotations

import logging
from collections.abc import Mapping

from ..errors import InvalidOracleAnswer
from ..models import RoundData

logger = logging.getLogger(__name__)


class StaticPriceOracle:
    """Deterministic price feeds keyed by feed name."""

    def __init__(
        self,
        answers: Mapping[str, int] | None = None,
        decimals: Mapping[str, int] | None = None,
        default_decimals: int = 18,
    ) -> None:
        self._answers: dict[str, int] = dict(answers or {})
        self._decimals: dict[str, int] = dict(decimals or {})
        self._default_decimals = default_decimals
        self._rounds: dict[str, int] = {feed: 1 for feed in self._answers}

    def set_answer(self, feed: str, answer: int) -> None:
        self._answers[feed] = answer
        self._rounds[feed] = self._rounds.get(feed, 0) + 1
        logger.debug("Feed %s round %d answer %d", feed, self._rounds[feed], answer)

    def latest_answer(self, feed: str) -> RoundData:
        if feed not in self._answers:
            raise InvalidOracleAnswer(feed, 0)
        round_id = self._rounds[feed]
        return RoundData(round_id=round_id, answer=self._answers[feed], updated_at=round_id)

    def decimals(self, feed: str) -> int:
        return self._decimals.get(feed, self._default_decimals)


class StaticExchangeRates:
    """Wrapped-asset exchange rates (underlying per 1e18 wrapped units)."""

    def __init__(self, rates: Mapping[str, int] | None = None) -> None:
        self._rates: dict[str, int] = dict(rates or {})

    def set_rate(self, asset: str, rate: int) -> None:
        self._rates[asset] = rate

    def exchange_rate(self, asset: str) -> int:
        if asset not in self._rates:
            raise InvalidOracleAnswer(f"{asset} exchange rate", 0)
        return self._rates[asset]
