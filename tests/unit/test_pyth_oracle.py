"""Unit tests for Pyth oracle — price response parsing and error handling."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from jitvault.config import PythConfig
from jitvault.errors import InvalidOracleAnswer
from jitvault.oracles.pyth import PythOracle, _requote


@pytest.fixture()
def oracle() -> PythOracle:
    return PythOracle(
        PythConfig(
            hermes_url="https://hermes.example.com/v2/updates/price/latest",
            quote="ETH",
            feeds={"ETH": "eee111", "CBETH/ETH": "ccc222", "WSTETH/ETH": "www333"},
        )
    )


def _make_pyth_response(items: list[dict]) -> dict:
    return {"parsed": items}


def _mock_session(mock_data: dict | None = None, status: int = 200) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=mock_data)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


_ETH = {"id": "eee111", "price": {"price": "300000000000", "expo": "-8", "publish_time": 1700}}
_CBETH = {"id": "ccc222", "price": {"price": "321000000000", "expo": "-8", "publish_time": 1701}}
_WSTETH = {"id": "www333", "price": {"price": "351000", "expo": "-2", "publish_time": 1702}}


class TestRequote:
    def test_same_exponent(self) -> None:
        assert _requote(321, -2, 300, -2) == 1070000000000000000

    def test_different_exponents(self) -> None:
        # 3510.00 / 3000.00000000
        assert _requote(351000, -2, 300000000000, -8) == 1170000000000000000


class TestPythOracleRefresh:
    @pytest.mark.asyncio
    async def test_parses_response_correctly(self, oracle: PythOracle) -> None:
        session = _mock_session(_make_pyth_response([_ETH, _CBETH, _WSTETH]))

        with patch("jitvault.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("jitvault.oracles.pyth.aiohttp.TCPConnector"):
                answers = await oracle.refresh()

        assert answers["ETH"].answer == 10**18
        assert answers["CBETH/ETH"].answer == 107 * 10**16
        assert answers["WSTETH/ETH"].answer == 117 * 10**16
        assert answers["CBETH/ETH"].updated_at == 1701
        assert oracle.latest_answer("CBETH/ETH") == answers["CBETH/ETH"]
        assert oracle.decimals("CBETH/ETH") == 18

    @pytest.mark.asyncio
    async def test_handles_http_error(self, oracle: PythOracle) -> None:
        session = _mock_session(status=500)

        with patch("jitvault.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("jitvault.oracles.pyth.aiohttp.TCPConnector"):
                answers = await oracle.refresh()

        assert answers == {}

    @pytest.mark.asyncio
    async def test_handles_network_error(self, oracle: PythOracle) -> None:
        session = AsyncMock()
        session.get = MagicMock(side_effect=ConnectionError("timeout"))
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=None)

        with patch("jitvault.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("jitvault.oracles.pyth.aiohttp.TCPConnector"):
                answers = await oracle.refresh()

        assert answers == {}

    @pytest.mark.asyncio
    async def test_missing_quote_feed_returns_empty(self, oracle: PythOracle) -> None:
        session = _mock_session(_make_pyth_response([_CBETH]))

        with patch("jitvault.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("jitvault.oracles.pyth.aiohttp.TCPConnector"):
                answers = await oracle.refresh()

        assert answers == {}
        with pytest.raises(InvalidOracleAnswer):
            oracle.latest_answer("CBETH/ETH")

    @pytest.mark.asyncio
    async def test_symbol_filter(self, oracle: PythOracle) -> None:
        session = _mock_session(_make_pyth_response([_ETH, _CBETH]))

        with patch("jitvault.oracles.pyth.aiohttp.ClientSession", return_value=session):
            with patch("jitvault.oracles.pyth.aiohttp.TCPConnector"):
                answers = await oracle.refresh(symbols=["CBETH/ETH"])

        assert "CBETH/ETH" in answers
        # quote is always fetched, WSTETH was not requested
        assert "ETH" in answers
        assert "WSTETH/ETH" not in answers
        url = session.get.call_args[0][0]
        assert "www333" not in url

    @pytest.mark.asyncio
    async def test_empty_feeds_returns_empty(self) -> None:
        oracle = PythOracle(PythConfig(hermes_url="https://x.com", feeds={}))
        answers = await oracle.refresh()
        assert answers == {}


class TestPythOracleReads:
    def test_unknown_feed_raises(self, oracle: PythOracle) -> None:
        with pytest.raises(InvalidOracleAnswer):
            oracle.latest_answer("RETH/ETH")
