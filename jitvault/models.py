"""Data models. Frozen unless they are transaction-scoped context."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import UnsupportedAsset


class SupportedAsset(str, Enum):
    """The closed set of assets the vault will hold."""

    WETH = "WETH"
    WSTETH = "WSTETH"
    RETH = "RETH"
    CBETH = "CBETH"

    @classmethod
    def parse(cls, value: str | SupportedAsset) -> SupportedAsset:
        """Return the member for ``value`` or raise ``UnsupportedAsset``."""
        if isinstance(value, SupportedAsset):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedAsset(value) from None

    @classmethod
    def is_supported(cls, value: str) -> bool:
        try:
            cls.parse(value)
        except UnsupportedAsset:
            return False
        return True


@dataclass(frozen=True)
class AssetLedgerEntry:
    """What the vault has supplied to, and borrowed from, the lending pool."""

    asset: SupportedAsset
    supplied: int = 0
    borrowed: int = 0


@dataclass(frozen=True)
class RoundData:
    """A single price-feed reading."""

    round_id: int
    answer: int
    updated_at: int


@dataclass(frozen=True)
class ReserveData:
    """Lending-pool reserve info for one asset."""

    asset: str
    yield_token: str


@dataclass(frozen=True)
class UserAccountData:
    """Lending-pool account summary, valued in the common unit."""

    total_collateral: int
    total_debt: int
    health_factor: int


@dataclass(frozen=True)
class PoolDescriptor:
    """Identifies a pool; currencies are sorted (currency0 < currency1)."""

    currency0: str
    currency1: str
    fee: int
    tick_spacing: int
    hooks: str = ""


@dataclass(frozen=True)
class SwapParams:
    """Swap request. Negative ``amount_specified`` means exact input."""

    zero_for_one: bool
    amount_specified: int
    sqrt_price_limit_x96: int = 0

    @property
    def exact_input(self) -> bool:
        return self.amount_specified < 0


@dataclass(frozen=True)
class BalanceDelta:
    """Signed amounts from the caller's side; negative means owed to the pool."""

    amount0: int = 0
    amount1: int = 0

    def __add__(self, other: BalanceDelta) -> BalanceDelta:
        return BalanceDelta(self.amount0 + other.amount0, self.amount1 + other.amount1)


ZERO_DELTA = BalanceDelta()


@dataclass(frozen=True)
class HookPermissions:
    """Which pool lifecycle callbacks a hook wants to receive."""

    before_initialize: bool = False
    after_initialize: bool = False
    before_add_liquidity: bool = False
    after_add_liquidity: bool = False
    before_remove_liquidity: bool = False
    after_remove_liquidity: bool = False
    before_swap: bool = False
    after_swap: bool = False
    before_donate: bool = False
    after_donate: bool = False
    before_swap_returns_delta: bool = False
    after_swap_returns_delta: bool = False


@dataclass(frozen=True)
class HookResult:
    """Value every swap callback hands back to the pool engine."""

    selector: str
    delta: BalanceDelta = ZERO_DELTA
    fee_override: int = 0


BEFORE_SWAP_NOOP = HookResult(selector="before_swap")
AFTER_SWAP_NOOP = HookResult(selector="after_swap")


@dataclass(frozen=True)
class LiquidityCaps:
    """Per-asset caps in canonical pool order."""

    cap0: int
    cap1: int
    step_out: int

    @property
    def is_zero(self) -> bool:
        return self.cap0 == 0 and self.cap1 == 0


class CycleState(str, Enum):
    IDLE = "idle"
    SIZED = "sized"
    INJECTED = "injected"
    SETTLED = "settled"


@dataclass
class SwapCycle:
    """Per-swap context handed to both swap callbacks.

    The pool engine creates one for each swap; it must never be shared between
    swaps.
    """

    state: CycleState = CycleState.IDLE
    tick_lower: int = 0
    tick_upper: int = 0
    liquidity: int = 0

    @property
    def is_active(self) -> bool:
        return self.liquidity > 0

    def record(self, tick_lower: int, tick_upper: int, liquidity: int) -> None:
        self.tick_lower = tick_lower
        self.tick_upper = tick_upper
        self.liquidity = liquidity
        self.state = CycleState.INJECTED

    def clear(self) -> None:
        self.tick_lower = 0
        self.tick_upper = 0
        self.liquidity = 0
        self.state = CycleState.IDLE


@dataclass(frozen=True)
class AssetReserve:
    """Single asset within a vault report."""

    asset: str
    supplied: int
    borrowed: int
    value: int


@dataclass(frozen=True)
class VaultReport:
    """Aggregated vault state, valued in the common unit."""

    total_assets: int
    total_supply: int
    health_factor: int
    reserves: tuple[AssetReserve, ...] = ()


def asset_id(asset: str | SupportedAsset) -> str:
    """Plain string key for an asset, whether or not it is a ``SupportedAsset``."""
    if isinstance(asset, SupportedAsset):
        return asset.value
    return str(asset)
