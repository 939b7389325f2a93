"""Exception taxonomy for vault, ledger, sizing and pool errors."""
from __future__ import annotations


class JitVaultError(Exception):
    """Base class for every error raised by this package."""


class UnsupportedAsset(JitVaultError):
    """Asset is not one of the fixed supported identifiers."""

    def __init__(self, asset: object) -> None:
        super().__init__(f"Unsupported asset: {asset!r}")
        self.asset = asset


class Unauthorized(JitVaultError):
    """Ledger mutation attempted by a caller other than the authority."""

    def __init__(self, caller: str) -> None:
        super().__init__(f"Caller {caller!r} is not authorized")
        self.caller = caller


class ZeroAssets(JitVaultError):
    """Redeem would release nothing."""


class InvalidOracleAnswer(JitVaultError):
    """Price feed (or exchange rate) returned a non-positive answer."""

    def __init__(self, feed: str, answer: int) -> None:
        super().__init__(f"Invalid oracle answer for {feed}: {answer}")
        self.feed = feed
        self.answer = answer


class InsufficientLiquidity(JitVaultError):
    """Band sizing rounded to zero liquidity.

    The controller treats this as a silent skip; it is never raised out of a
    swap callback.
    """


class ArithmeticOverflow(JitVaultError):
    """Value exceeded its fixed-width integer bound."""


class InsufficientBalance(JitVaultError):
    """Account holds less of an asset than a transfer requires."""

    def __init__(self, asset: str, account: str, balance: int, required: int) -> None:
        super().__init__(
            f"{account} holds {balance} {asset}, {required} required"
        )
        self.asset = asset
        self.account = account
        self.balance = balance
        self.required = required


class InsufficientAllowance(JitVaultError):
    """Spender is not approved for enough vault shares."""


class CurrencyNotSettled(JitVaultError):
    """A pool-engine caller left a non-zero currency delta open."""


class PoolNotInitialized(JitVaultError):
    """Pool descriptor has no initialized price."""
