"""Deterministic in-memory stand-ins for the external services."""
from .lending import InMemoryLendingPool
from .pool_manager import InMemoryPoolManager
from .tokens import InMemoryTokenBank

__all__ = ["InMemoryLendingPool", "InMemoryPoolManager", "InMemoryTokenBank"]
