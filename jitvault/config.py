"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import SupportedAsset

logger = logging.getLogger(__name__)

WAD = 10**18
BPS = 10_000

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VaultConfig:
    address: str = "vault"
    authority: str = "jit-hook"
    base_asset: str = SupportedAsset.WETH.value
    leverage_bps: int = 20_000


@dataclass(frozen=True)
class PricingRouteConfig:
    kind: str = "feed"  # base | feed | wrapped
    feed: str = ""
    underlying: str = ""


@dataclass(frozen=True)
class PricingConfig:
    routes: dict[str, PricingRouteConfig] = field(default_factory=dict)


@dataclass(frozen=True)
class StaticOracleConfig:
    answers: dict[str, int] = field(default_factory=dict)
    decimals: dict[str, int] = field(default_factory=dict)
    exchange_rates: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    quote: str = "ETH"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OracleConfig:
    provider: str = "static"
    static: StaticOracleConfig = field(default_factory=StaticOracleConfig)
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class LendingConfig:
    address: str = "lending-pool"
    liquidation_threshold_bps: int = 8_000


@dataclass(frozen=True)
class PoolConfig:
    currency0: str = SupportedAsset.RETH.value
    currency1: str = SupportedAsset.WETH.value
    fee: int = 500
    tick_spacing: int = 10
    tick: int = 0
    address: str = "pool-manager"
    ambient_liquidity: int = 0


@dataclass(frozen=True)
class AppConfig:
    vault: VaultConfig = field(default_factory=VaultConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    lending: LendingConfig = field(default_factory=LendingConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def to_wei(value: Any, decimals: int = 18) -> int:
    """Convert a whole-unit amount such as ``"1.5"`` into integer base units."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid token amount: {value!r}") from None
    return int(amount * (Decimal(10) ** decimals))


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_vault(raw: dict[str, Any]) -> VaultConfig:
    return VaultConfig(
        address=raw.get("address", "vault"),
        authority=raw.get("authority", "jit-hook"),
        base_asset=str(raw.get("base_asset", SupportedAsset.WETH.value)).upper(),
        leverage_bps=int(raw.get("leverage_bps", 20_000)),
    )


def _build_pricing(raw: dict[str, Any]) -> PricingConfig:
    routes: dict[str, PricingRouteConfig] = {}
    for asset, cfg in raw.items():
        cfg = cfg or {}
        routes[str(asset).upper()] = PricingRouteConfig(
            kind=cfg.get("kind", "feed"),
            feed=cfg.get("feed", ""),
            underlying=cfg.get("underlying", ""),
        )
    return PricingConfig(routes=routes)


def _build_oracle(raw: dict[str, Any]) -> OracleConfig:
    static_raw = raw.get("static", {})
    pyth_raw = raw.get("pyth", {})
    return OracleConfig(
        provider=raw.get("provider", "static"),
        static=StaticOracleConfig(
            answers={k: int(v) for k, v in static_raw.get("answers", {}).items()},
            decimals={k: int(v) for k, v in static_raw.get("decimals", {}).items()},
            exchange_rates={
                str(k).upper(): int(v)
                for k, v in static_raw.get("exchange_rates", {}).items()
            },
        ),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            quote=pyth_raw.get("quote", PythConfig.quote),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


def _build_lending(raw: dict[str, Any]) -> LendingConfig:
    return LendingConfig(
        address=raw.get("address", "lending-pool"),
        liquidation_threshold_bps=int(raw.get("liquidation_threshold_bps", 8_000)),
    )


def _build_pool(raw: dict[str, Any]) -> PoolConfig:
    return PoolConfig(
        currency0=str(raw.get("currency0", SupportedAsset.RETH.value)).upper(),
        currency1=str(raw.get("currency1", SupportedAsset.WETH.value)).upper(),
        fee=int(raw.get("fee", 500)),
        tick_spacing=int(raw.get("tick_spacing", 10)),
        tick=int(raw.get("tick", 0)),
        address=raw.get("address", "pool-manager"),
        ambient_liquidity=to_wei(raw.get("ambient_liquidity", 0)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        vault=_build_vault(raw.get("vault", {})),
        pricing=_build_pricing(raw.get("pricing", {})),
        oracle=_build_oracle(raw.get("oracle", {})),
        lending=_build_lending(raw.get("lending", {})),
        pool=_build_pool(raw.get("pool", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not SupportedAsset.is_supported(cfg.vault.base_asset):
        raise ValueError(f"Base asset '{cfg.vault.base_asset}' is not supported")
    if cfg.vault.leverage_bps <= 0:
        raise ValueError("leverage_bps must be positive")

    for asset in SupportedAsset:
        route = cfg.pricing.routes.get(asset.value)
        if route is None:
            raise ValueError(f"No pricing route configured for '{asset.value}'")
        if route.kind not in ("base", "feed", "wrapped"):
            raise ValueError(f"Unknown pricing kind '{route.kind}' for '{asset.value}'")
        if route.kind == "base" and asset.value != cfg.vault.base_asset:
            raise ValueError(f"Only the base asset may use kind 'base', not '{asset.value}'")
        if route.kind == "wrapped" and not route.underlying:
            raise ValueError(f"Wrapped asset '{asset.value}' has no underlying")
    for asset in cfg.pricing.routes:
        if not SupportedAsset.is_supported(asset):
            raise ValueError(f"Pricing route for unsupported asset '{asset}'")

    if cfg.oracle.provider not in ("static", "pyth"):
        raise ValueError(f"Unknown oracle provider '{cfg.oracle.provider}'")

    if not 0 < cfg.lending.liquidation_threshold_bps <= BPS:
        raise ValueError("liquidation_threshold_bps must be in (0, 10000]")

    if cfg.pool.currency0 >= cfg.pool.currency1:
        raise ValueError("Pool currencies must be sorted (currency0 < currency1)")
    if cfg.pool.tick_spacing <= 0:
        raise ValueError("tick_spacing must be positive")
