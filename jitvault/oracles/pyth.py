"""Pyth Network price oracle service."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import InvalidOracleAnswer
from ..models import RoundData

logger = logging.getLogger(__name__)

ANSWER_DECIMALS = 18


class PythOracle:
    """Price feeds from Pyth Hermes, re-quoted in the configured quote asset.

    Hermes serves USD prices; every configured feed is divided by the quote
    feed so answers are expressed in the common unit with 18 decimals.
    ``refresh`` must be awaited before the synchronous reads see any data.
    """

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.quote = config.quote
        self.price_feeds = dict(config.feeds)
        self._snapshot: dict[str, RoundData] = {}

    def latest_answer(self, feed: str) -> RoundData:
        try:
            return self._snapshot[feed]
        except KeyError:
            raise InvalidOracleAnswer(feed, 0) from None

    def decimals(self, feed: str) -> int:
        return ANSWER_DECIMALS

    async def refresh(self, symbols: list[str] | None = None) -> dict[str, RoundData]:
        """Fetch current prices from Pyth Network and update the snapshot.

        Args:
            symbols: Optional list of feed names to fetch. The quote feed is
                     always included. If None, fetches all configured feeds.
        """
        updated: dict[str, RoundData] = {}

        feeds = self.price_feeds
        if symbols is not None:
            feeds = {
                k: v
                for k, v in self.price_feeds.items()
                if k in symbols or k == self.quote
            }

        feed_ids = list(set(feeds.values()))
        if not feed_ids:
            return updated
        if self.quote not in feeds:
            logger.error("Quote feed %s is not configured", self.quote)
            return updated

        query_params = "&".join([f"ids[]={fid}" for fid in feed_ids])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return updated

                    data = await response.json()
                    parsed = data.get("parsed", [])
        except Exception as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return updated

        # Create reverse mapping from feed ID to feed names
        id_to_names: dict[str, list[str]] = {}
        for name, feed_id in feeds.items():
            id_to_names.setdefault(feed_id, []).append(name)

        raw: dict[str, tuple[int, int, int]] = {}
        for item in parsed:
            price_data = item.get("price", {})
            reading = (
                int(price_data.get("price", 0)),
                int(price_data.get("expo", 0)),
                int(price_data.get("publish_time", 0)),
            )
            for name in id_to_names.get(item.get("id"), []):
                raw[name] = reading

        quote = raw.get(self.quote)
        if quote is None or quote[0] <= 0:
            logger.error("Quote feed %s missing or non-positive", self.quote)
            return updated

        for name, (price, expo, publish_time) in raw.items():
            answer = _requote(price, expo, quote[0], quote[1])
            updated[name] = RoundData(
                round_id=publish_time, answer=answer, updated_at=publish_time
            )

        self._snapshot.update(updated)
        logger.info("Fetched prices from Pyth Network (in %s):", self.quote)
        for name, round_data in sorted(updated.items()):
            logger.info("  %s: %.6f", name, round_data.answer / 10**ANSWER_DECIMALS)

        return updated


def _requote(price: int, expo: int, quote_price: int, quote_expo: int) -> int:
    """Express ``price * 10**expo`` in quote units with 18 decimals."""
    numerator = price * 10**ANSWER_DECIMALS
    denominator = quote_price
    shift = expo - quote_expo
    if shift >= 0:
        numerator *= 10**shift
    else:
        denominator *= 10**-shift
    return numerator // denominator
