"""Checked integer wrapper for pool balance arithmetic.

Balances, reserves and liquidity shares are unsigned 128-bit quantities.
SafeInt keeps the arithmetic readable while refusing to produce values
that the ledger could never store:
- Division by zero raises DivisionByZero
- Subtraction underflow raises Underflow
- Leaving the u128 range raises U128Overflow on to_u128()

Intermediate products are allowed to exceed u128 (Python ints are
unbounded); only values that get stored are range-checked.

Usage pattern:
    from amm_engine.math.safe_int import S

    minted = (S(amount_a) * S(total)) // S(reserve_a)
    pool.liquidity_total = (S(total) + minted).to_u128()
"""

from __future__ import annotations

U128_MAX = 2**128 - 1


class SafeIntError(ArithmeticError):
    """Base class for SafeInt arithmetic errors."""

    pass


class DivisionByZero(SafeIntError):
    """Division by zero."""

    pass


class Underflow(SafeIntError):
    """Subtraction would produce a negative balance."""

    pass


class U128Overflow(SafeIntError):
    """Value does not fit in an unsigned 128-bit balance."""

    pass


class SafeInt:
    """Integer with checked arithmetic for balance math.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _extract_value(other))

    def __radd__(self, other: int) -> SafeInt:
        return SafeInt(other + self._value)

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract other from self.

        Raises:
            Underflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise Underflow(f"Underflow: {self._value} - {other_val} = {result}")
        return SafeInt(result)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _extract_value(other))

    def __rmul__(self, other: int) -> SafeInt:
        return SafeInt(other * self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Truncating division.

        Operands are non-negative balances, so floor and truncation
        toward zero coincide.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    # --- Comparison ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def to_u128(self) -> int:
        """Convert to int, validating the u128 range.

        Raises:
            U128Overflow: If value is negative or exceeds 2^128-1
        """
        if self._value < 0:
            raise U128Overflow(f"Negative value cannot be a balance: {self._value}")
        if self._value > U128_MAX:
            raise U128Overflow(f"Value exceeds u128 max: {self._value}")
        return self._value


def _extract_value(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    return x


S = SafeInt
