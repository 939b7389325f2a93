"""Leveraged just-in-time liquidity vault."""

__version__ = "0.1.0"
