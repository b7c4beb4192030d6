"""Integer math for pool accounting."""

from amm_engine.math.fixed_point import (
    BPS_DENOMINATOR,
    amount_after_fee,
    isqrt,
    mul_div,
    price_impact_bps,
    ratio_within_tolerance,
    scaled_ratio,
)
from amm_engine.math.safe_int import (
    U128_MAX,
    DivisionByZero,
    U128Overflow,
    S,
    SafeInt,
    SafeIntError,
    Underflow,
)

__all__ = [
    "BPS_DENOMINATOR",
    "amount_after_fee",
    "isqrt",
    "mul_div",
    "price_impact_bps",
    "ratio_within_tolerance",
    "scaled_ratio",
    "U128_MAX",
    "DivisionByZero",
    "U128Overflow",
    "S",
    "SafeInt",
    "SafeIntError",
    "Underflow",
]
