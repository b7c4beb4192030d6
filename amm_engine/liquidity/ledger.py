"""Liquidity ledger: provider shares and time-locks per pool.

Deposits and withdrawals are split in two phases. `plan_*` runs every
check and computes every resulting value without touching state;
`commit_*` only assigns the planned values. A plan is valid only while
the caller holds the pool's lock between the two phases.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import structlog

from amm_engine.errors import (
    InsufficientLiquidity,
    InsufficientLpTokens,
    InvalidAmount,
    LockPeriodTooShort,
    MinOutputNotMet,
    RatioMismatch,
    SlippageTooHigh,
    TimeLockActive,
    ZeroAmount,
)
from amm_engine.math import S, isqrt, mul_div, ratio_within_tolerance, scaled_ratio
from amm_engine.pools.types import Pool

logger = structlog.get_logger()

PositionKey = tuple[int, str]


@dataclass(frozen=True)
class TimeLock:
    """Withdrawal lock on a provider's position."""

    locked_until: int
    created_at: int
    created_height: int

    def is_active(self, now: int) -> bool:
        return now < self.locked_until


@dataclass(frozen=True)
class DepositPlan:
    """Fully validated deposit, ready to commit."""

    pool_id: int
    provider: str
    amount_a: int
    amount_b: int
    minted: int
    new_reserve_a: int
    new_reserve_b: int
    new_liquidity_total: int
    new_balance: int
    lock: TimeLock | None = None


@dataclass(frozen=True)
class WithdrawalPlan:
    """Fully validated withdrawal, ready to commit."""

    pool_id: int
    provider: str
    shares: int
    amount_a: int
    amount_b: int
    new_reserve_a: int
    new_reserve_b: int
    new_liquidity_total: int
    new_balance: int


class LiquidityLedger:
    """Tracks liquidity shares and time-locks keyed by (pool id, provider).

    Args:
        ratio_tolerance_bps: Allowed deviation of a deposit's B/A ratio
            from the pool's B/A ratio
        min_lock_period: Shortest lock accepted by a locked deposit
    """

    def __init__(self, ratio_tolerance_bps: int, min_lock_period: int) -> None:
        self.ratio_tolerance_bps = ratio_tolerance_bps
        self.min_lock_period = min_lock_period
        self._positions: dict[PositionKey, int] = {}
        self._locks: dict[PositionKey, TimeLock] = {}

    # --- Queries ---

    def balance_of(self, pool_id: int, provider: str) -> int:
        return self._positions.get((pool_id, provider), 0)

    def lock_of(self, pool_id: int, provider: str) -> TimeLock | None:
        return self._locks.get((pool_id, provider))

    def providers(self, pool_id: int) -> dict[str, int]:
        """All non-zero positions in a pool."""
        return {
            provider: balance
            for (pid, provider), balance in self._positions.items()
            if pid == pool_id
        }

    def total_shares(self, pool_id: int) -> int:
        return sum(self.providers(pool_id).values())

    # --- Deposits ---

    def credit(self, pool_id: int, provider: str, shares: int) -> None:
        """Credit shares minted outside a deposit (pool bootstrap)."""
        if shares <= 0:
            raise InvalidAmount(f"Cannot credit {shares} shares")
        key = (pool_id, provider)
        self._positions[key] = (S(self._positions.get(key, 0)) + shares).to_u128()

    def plan_deposit(
        self,
        pool: Pool,
        provider: str,
        amount_a: int,
        amount_b: int,
        min_liquidity: int,
        *,
        now: int,
        height: int,
        lock_period: int | None = None,
    ) -> DepositPlan:
        """Validate a deposit and compute the shares it mints.

        Raises:
            LockPeriodTooShort: If a lock is requested below the minimum
            ZeroAmount: If either amount is zero
            RatioMismatch: If the deposit ratio deviates beyond tolerance
            InvalidAmount: If no shares would be minted
            SlippageTooHigh: If minted shares fall below min_liquidity
        """
        if lock_period is not None and lock_period < self.min_lock_period:
            raise LockPeriodTooShort(
                f"Lock period {lock_period}s is below the minimum of {self.min_lock_period}s"
            )
        if amount_a <= 0 or amount_b <= 0:
            raise ZeroAmount(f"Deposit amounts must be positive, got {amount_a} and {amount_b}")

        if pool.has_liquidity:
            current_ratio = scaled_ratio(pool.reserve_b, pool.reserve_a)
            proposed_ratio = scaled_ratio(amount_b, amount_a)
            if not ratio_within_tolerance(current_ratio, proposed_ratio, self.ratio_tolerance_bps):
                raise RatioMismatch(
                    f"Deposit ratio {proposed_ratio} deviates from pool ratio {current_ratio} "
                    f"by more than {self.ratio_tolerance_bps} bps"
                )
            # Minimum of both estimates so a skewed deposit cannot mint excess shares
            minted = min(
                mul_div(amount_a, pool.liquidity_total, pool.reserve_a),
                mul_div(amount_b, pool.liquidity_total, pool.reserve_b),
            )
        else:
            minted = isqrt((S(amount_a) * S(amount_b)).value)

        if minted == 0:
            raise InvalidAmount("Deposit is too small to mint any liquidity")
        if minted < min_liquidity:
            raise SlippageTooHigh(f"Deposit mints {minted} shares, minimum is {min_liquidity}")

        lock = None
        if lock_period is not None:
            locked_until = (S(now) + lock_period).to_u128()
            existing = self.lock_of(pool.pool_id, provider)
            # A new lock never shortens an existing one
            if existing is not None and existing.locked_until > locked_until:
                locked_until = existing.locked_until
            lock = TimeLock(locked_until=locked_until, created_at=now, created_height=height)

        return DepositPlan(
            pool_id=pool.pool_id,
            provider=provider,
            amount_a=amount_a,
            amount_b=amount_b,
            minted=minted,
            new_reserve_a=(S(pool.reserve_a) + amount_a).to_u128(),
            new_reserve_b=(S(pool.reserve_b) + amount_b).to_u128(),
            new_liquidity_total=(S(pool.liquidity_total) + minted).to_u128(),
            new_balance=(S(self.balance_of(pool.pool_id, provider)) + minted).to_u128(),
            lock=lock,
        )

    def commit_deposit(self, pool: Pool, plan: DepositPlan) -> None:
        pool.reserve_a = plan.new_reserve_a
        pool.reserve_b = plan.new_reserve_b
        pool.liquidity_total = plan.new_liquidity_total
        key = (plan.pool_id, plan.provider)
        self._positions[key] = plan.new_balance
        if plan.lock is not None:
            self._locks[key] = plan.lock

        logger.info(
            "liquidity_added",
            pool_id=plan.pool_id,
            provider=plan.provider,
            amount_a=plan.amount_a,
            amount_b=plan.amount_b,
            minted=plan.minted,
            locked_until=plan.lock.locked_until if plan.lock else None,
        )

    # --- Withdrawals ---

    def plan_withdrawal(
        self,
        pool: Pool,
        provider: str,
        shares: int,
        min_amount_a: int,
        min_amount_b: int,
        *,
        now: int,
    ) -> WithdrawalPlan:
        """Validate a withdrawal and compute the proportional payout.

        Raises:
            TimeLockActive: If the position is still locked
            ZeroAmount: If shares is zero
            InsufficientLpTokens: If the provider holds fewer shares
            InsufficientLiquidity: If shares exceed the pool's total
            InvalidAmount: If either payout rounds to zero
            MinOutputNotMet: If a payout is below the caller's minimum
        """
        lock = self.lock_of(pool.pool_id, provider)
        if lock is not None and lock.is_active(now):
            raise TimeLockActive(f"Liquidity is locked until {lock.locked_until}")
        if shares <= 0:
            raise ZeroAmount("Shares to remove must be positive")
        balance = self.balance_of(pool.pool_id, provider)
        if shares > balance:
            raise InsufficientLpTokens(f"Provider holds {balance} shares, requested {shares}")
        if shares > pool.liquidity_total:
            raise InsufficientLiquidity(
                f"Pool has {pool.liquidity_total} shares outstanding, requested {shares}"
            )

        amount_a = mul_div(shares, pool.reserve_a, pool.liquidity_total)
        amount_b = mul_div(shares, pool.reserve_b, pool.liquidity_total)
        if amount_a == 0 or amount_b == 0:
            raise InvalidAmount("Withdrawal is too small to return both assets")
        if amount_a < min_amount_a or amount_b < min_amount_b:
            raise MinOutputNotMet(
                f"Withdrawal returns ({amount_a}, {amount_b}), "
                f"minimum is ({min_amount_a}, {min_amount_b})"
            )

        return WithdrawalPlan(
            pool_id=pool.pool_id,
            provider=provider,
            shares=shares,
            amount_a=amount_a,
            amount_b=amount_b,
            new_reserve_a=(S(pool.reserve_a) - amount_a).value,
            new_reserve_b=(S(pool.reserve_b) - amount_b).value,
            new_liquidity_total=(S(pool.liquidity_total) - shares).value,
            new_balance=(S(balance) - shares).value,
        )

    def commit_withdrawal(self, pool: Pool, plan: WithdrawalPlan) -> None:
        pool.reserve_a = plan.new_reserve_a
        pool.reserve_b = plan.new_reserve_b
        pool.liquidity_total = plan.new_liquidity_total
        key = (plan.pool_id, plan.provider)
        if plan.new_balance == 0:
            self._positions.pop(key, None)
            self._locks.pop(key, None)
        else:
            self._positions[key] = plan.new_balance

        logger.info(
            "liquidity_removed",
            pool_id=plan.pool_id,
            provider=plan.provider,
            shares=plan.shares,
            amount_a=plan.amount_a,
            amount_b=plan.amount_b,
            remaining=plan.new_balance,
        )

    # --- Persistence ---

    def positions(self) -> dict[PositionKey, int]:
        return dict(self._positions)

    def locks(self) -> dict[PositionKey, TimeLock]:
        return dict(self._locks)

    def restore(
        self,
        positions: Mapping[PositionKey, int] | Iterable[tuple[PositionKey, int]],
        locks: Mapping[PositionKey, TimeLock] | Iterable[tuple[PositionKey, TimeLock]],
    ) -> None:
        self._positions = {key: balance for key, balance in dict(positions).items() if balance > 0}
        self._locks = dict(locks)


__all__ = [
    "LiquidityLedger",
    "TimeLock",
    "DepositPlan",
    "WithdrawalPlan",
]
