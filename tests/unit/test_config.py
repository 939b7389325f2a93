"""Unit tests for config loading, env interpolation, and validation."""
from __future__ import annotations

from pathlib import Path

import pytest

from jitvault.config import (
    AppConfig,
    PoolConfig,
    VaultConfig,
    _interpolate_env,
    load_config,
    to_wei,
)


@pytest.fixture()
def sample_yaml(sample_yaml_path: Path) -> str:
    return sample_yaml_path.read_text()


def _write(tmp_path: Path, content: str) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(content)
    return cfg_file


class TestInterpolateEnv:
    def test_simple_substitution(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_VAR", "hello")
        assert _interpolate_env("${MY_VAR}") == "hello"

    def test_missing_var_becomes_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR_XYZ", raising=False)
        assert _interpolate_env("${NONEXISTENT_VAR_XYZ}") == ""

    def test_nested_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED", "abc")
        result = _interpolate_env({"key": "${FEED}", "plain": "text"})
        assert result == {"key": "abc", "plain": "text"}

    def test_nested_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("A", "x")
        assert _interpolate_env(["${A}", "y"]) == ["x", "y"]

    def test_non_string_passthrough(self) -> None:
        assert _interpolate_env(42) == 42
        assert _interpolate_env(True) is True


class TestToWei:
    def test_whole_units(self) -> None:
        assert to_wei("10") == 10 * 10**18

    def test_fractional_units(self) -> None:
        assert to_wei("1.5") == 15 * 10**17

    def test_custom_decimals(self) -> None:
        assert to_wei(2, decimals=6) == 2_000_000

    def test_invalid_amount_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid token amount"):
            to_wei("lots")


class TestLoadConfig:
    def test_loads_valid_yaml(self, sample_yaml_path: Path) -> None:
        cfg = load_config(sample_yaml_path)
        assert isinstance(cfg, AppConfig)
        assert cfg.vault.base_asset == "WETH"
        assert cfg.vault.leverage_bps == 20_000
        assert cfg.pricing.routes["RETH"].kind == "wrapped"
        assert cfg.pricing.routes["CBETH"].feed == "CBETH/ETH"
        assert cfg.oracle.static.exchange_rates["RETH"] == 11 * 10**17
        assert cfg.oracle.pyth.feeds["ETH"] == "eee"
        assert cfg.pool.tick == 953
        assert cfg.pool.ambient_liquidity == 1000 * 10**18

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_env_interpolation_in_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, sample_yaml: str
    ) -> None:
        monkeypatch.setenv("TEST_AUTHORITY", "keeper-1")
        content = sample_yaml.replace("authority: jit-hook", "authority: ${TEST_AUTHORITY}")
        cfg = load_config(_write(tmp_path, content))
        assert cfg.vault.authority == "keeper-1"

    def test_asset_names_are_upper_cased(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("currency0: RETH", "currency0: reth")
        cfg = load_config(_write(tmp_path, content))
        assert cfg.pool.currency0 == "RETH"


class TestValidation:
    def test_unsupported_base_asset_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("base_asset: WETH", "base_asset: DAI")
        with pytest.raises(ValueError, match="not supported"):
            load_config(_write(tmp_path, content))

    def test_non_positive_leverage_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("leverage_bps: 20000", "leverage_bps: 0")
        with pytest.raises(ValueError, match="leverage_bps"):
            load_config(_write(tmp_path, content))

    def test_missing_route_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("  CBETH: {kind: feed, feed: CBETH/ETH}\n", "")
        with pytest.raises(ValueError, match="No pricing route configured for 'CBETH'"):
            load_config(_write(tmp_path, content))

    def test_unknown_route_kind_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("{kind: feed, feed: CBETH/ETH}", "{kind: twap}")
        with pytest.raises(ValueError, match="Unknown pricing kind"):
            load_config(_write(tmp_path, content))

    def test_base_kind_on_non_base_asset_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("{kind: feed, feed: CBETH/ETH}", "{kind: base}")
        with pytest.raises(ValueError, match="Only the base asset"):
            load_config(_write(tmp_path, content))

    def test_wrapped_without_underlying_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace(
            "RETH: {kind: wrapped, underlying: WETH}", "RETH: {kind: wrapped}"
        )
        with pytest.raises(ValueError, match="has no underlying"):
            load_config(_write(tmp_path, content))

    def test_route_for_unsupported_asset_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace(
            "  CBETH: {kind: feed, feed: CBETH/ETH}\n",
            "  CBETH: {kind: feed, feed: CBETH/ETH}\n  DAI: {kind: feed}\n",
        )
        with pytest.raises(ValueError, match="unsupported asset 'DAI'"):
            load_config(_write(tmp_path, content))

    def test_unknown_provider_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("provider: static", "provider: chainlink")
        with pytest.raises(ValueError, match="Unknown oracle provider"):
            load_config(_write(tmp_path, content))

    def test_threshold_out_of_range_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace(
            "liquidation_threshold_bps: 8000", "liquidation_threshold_bps: 12000"
        )
        with pytest.raises(ValueError, match="liquidation_threshold_bps"):
            load_config(_write(tmp_path, content))

    def test_unsorted_currencies_raise(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("currency0: RETH", "currency0: XETH").replace(
            "currency1: WETH", "currency1: RETH"
        )
        with pytest.raises(ValueError, match="must be sorted"):
            load_config(_write(tmp_path, content))

    def test_non_positive_tick_spacing_raises(self, tmp_path: Path, sample_yaml: str) -> None:
        content = sample_yaml.replace("tick_spacing: 10", "tick_spacing: 0")
        with pytest.raises(ValueError, match="tick_spacing"):
            load_config(_write(tmp_path, content))


class TestFrozenConfigs:
    def test_vault_config_immutable(self) -> None:
        v = VaultConfig()
        with pytest.raises(AttributeError):
            v.leverage_bps = 1  # type: ignore[misc]

    def test_pool_config_immutable(self) -> None:
        p = PoolConfig()
        with pytest.raises(AttributeError):
            p.tick = 5  # type: ignore[misc]

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.vault.base_asset == "WETH"
        assert cfg.oracle.provider == "static"
        assert cfg.lending.liquidation_threshold_bps == 8_000
