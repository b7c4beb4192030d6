"""Integer fixed-point helpers for pool math.

All helpers operate on non-negative integers and truncate toward zero,
which is the rounding the ledger relies on at every boundary check
(ratio tolerance, price impact, fee deduction).
"""

from __future__ import annotations

import math

from amm_engine.math.safe_int import DivisionByZero, S

__all__ = [
    "BPS_DENOMINATOR",
    "isqrt",
    "mul_div",
    "amount_after_fee",
    "scaled_ratio",
    "ratio_within_tolerance",
    "price_impact_bps",
]

# Basis-point denominator (10_000 bps = 100%)
BPS_DENOMINATOR = 10_000


def isqrt(value: int) -> int:
    """Integer square root, rounded down.

    Raises:
        ValueError: If value is negative
    """
    if value < 0:
        raise ValueError(f"isqrt of negative value: {value}")
    return math.isqrt(value)


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute a * b // denominator without intermediate rounding.

    Raises:
        DivisionByZero: If denominator is zero
    """
    return ((S(a) * S(b)) // S(denominator)).value


def amount_after_fee(amount: int, fee_bps: int) -> int:
    """Deduct a basis-point fee from an amount.

    For 30 bps: 100 -> 100 * 9970 // 10000 = 99.
    """
    if fee_bps < 0 or fee_bps >= BPS_DENOMINATOR:
        raise ValueError(f"Fee must be in [0, {BPS_DENOMINATOR}) bps, got {fee_bps}")
    return mul_div(amount, BPS_DENOMINATOR - fee_bps, BPS_DENOMINATOR)


def scaled_ratio(numerator: int, denominator: int, scale: int = BPS_DENOMINATOR) -> int:
    """Ratio numerator/denominator scaled by `scale`, truncated."""
    return mul_div(numerator, scale, denominator)


def ratio_within_tolerance(current: int, proposed: int, tolerance_bps: int) -> bool:
    """Check whether a proposed scaled ratio lies within tolerance of current.

    The allowed deviation is `current * tolerance_bps // 10000`; a deviation
    equal to the allowance passes.
    """
    allowance = mul_div(current, tolerance_bps, BPS_DENOMINATOR)
    return abs(proposed - current) <= allowance


def price_impact_bps(reserve_in: int, reserve_out: int, amount_in: int, amount_out: int) -> int:
    """Basis-point shortfall of the execution price versus the spot price.

    With spot = reserve_out / reserve_in and execution = amount_out / amount_in,
    the shortfall (spot - execution) / spot is computed exactly by
    cross-multiplying:

        (reserve_out * amount_in - amount_out * reserve_in) * 10000
        // (reserve_out * amount_in)

    Returns 0 when execution is not worse than spot.

    Raises:
        DivisionByZero: If reserve_out or amount_in is zero
    """
    spot_side = S(reserve_out) * S(amount_in)
    execution_side = S(amount_out) * S(reserve_in)
    if execution_side >= spot_side:
        if spot_side == 0:
            raise DivisionByZero("Price impact needs a non-zero spot price and input")
        return 0
    return ((spot_side - execution_side) * BPS_DENOMINATOR // spot_side).value
