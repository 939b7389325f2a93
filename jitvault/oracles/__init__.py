"""Price oracle implementations."""
from .pyth import PythOracle
from .static import StaticExchangeRates, StaticPriceOracle

__all__ = ["PythOracle", "StaticExchangeRates", "StaticPriceOracle"]
