"""Fixed-width integer helpers mirroring on-chain uint arithmetic."""
from __future__ import annotations

from ..errors import ArithmeticOverflow

Q96 = 1 << 96
Q128 = 1 << 128
MAX_UINT128 = (1 << 128) - 1
MAX_UINT160 = (1 << 160) - 1
MAX_UINT256 = (1 << 256) - 1


def check_uint(value: int, bits: int = 256) -> int:
    """Return ``value`` if it fits in an unsigned ``bits``-wide integer."""
    if value < 0 or value >> bits:
        raise ArithmeticOverflow(f"{value} does not fit in uint{bits}")
    return value


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator); the result must fit in uint256."""
    if denominator == 0:
        raise ArithmeticOverflow("division by zero")
    return check_uint((a * b) // denominator)


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator); the result must fit in uint256."""
    if denominator == 0:
        raise ArithmeticOverflow("division by zero")
    return check_uint(-((-a * b) // denominator))


def div_rounding_up(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticOverflow("division by zero")
    return -(-a // b)
