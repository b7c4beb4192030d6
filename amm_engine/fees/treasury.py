"""Platform fee accumulator."""

from __future__ import annotations

import threading
from collections.abc import Callable

import structlog

from amm_engine.errors import InsufficientBalance, ZeroAmount
from amm_engine.math import S

logger = structlog.get_logger()


class FeeTreasury:
    """Single scalar of collected swap fees, withdrawable by the owner.

    Owner checks are the engine's responsibility; the treasury only
    guards the balance.
    """

    def __init__(self, accumulated: int = 0) -> None:
        self._accumulated = accumulated
        self._lock = threading.Lock()

    @property
    def accumulated(self) -> int:
        return self._accumulated

    def accumulate(self, amount: int) -> None:
        with self._lock:
            self._accumulated = (S(self._accumulated) + amount).to_u128()

    def withdraw(self, amount: int, settle: Callable[[], None] | None = None) -> int:
        """Deduct `amount` from the accumulator.

        `settle` runs after the balance check and before the deduction,
        under the treasury lock; if it raises, the balance is unchanged.

        Returns:
            The remaining accumulated fees

        Raises:
            ZeroAmount: If amount is zero
            InsufficientBalance: If amount exceeds the accumulated fees
        """
        if amount <= 0:
            raise ZeroAmount("Withdrawal amount must be positive")
        with self._lock:
            if amount > self._accumulated:
                raise InsufficientBalance(
                    f"Requested {amount}, only {self._accumulated} in fees collected"
                )
            if settle is not None:
                settle()
            self._accumulated -= amount
            remaining = self._accumulated

        logger.info("fees_withdrawn", amount=amount, remaining=remaining)
        return remaining

    def restore(self, accumulated: int) -> None:
        with self._lock:
            self._accumulated = accumulated
