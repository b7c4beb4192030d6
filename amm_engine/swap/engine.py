"""Constant-product swap execution.

Formula: amount_out = reserve_out * in_after_fee / (reserve_in + in_after_fee)
where in_after_fee = amount_in * (10000 - fee_bps) / 10000.

The full input (fee included) is added to the input reserve, so the
product of reserves never decreases across a swap. `plan_swap`
re-checks that explicitly before anything is committed.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from amm_engine.errors import (
    InsufficientLiquidity,
    InvalidAmount,
    KInvariantViolated,
    MinOutputNotMet,
    PriceImpactTooHigh,
    SwapExpired,
    ZeroAmount,
)
from amm_engine.math import S, amount_after_fee, price_impact_bps
from amm_engine.pools.types import Pool, Side, normalize_asset

logger = structlog.get_logger()


@dataclass(frozen=True)
class SwapQuote:
    """Outcome of a swap against a pool's current reserves."""

    pool_id: int
    side_in: Side
    asset_in: str
    asset_out: str
    amount_in: int
    amount_in_after_fee: int
    amount_out: int
    fee: int
    price_impact_bps: int
    reserve_in: int
    reserve_out: int


@dataclass(frozen=True)
class SwapPlan:
    """Fully validated swap, ready to commit."""

    quote: SwapQuote
    new_reserve_in: int
    new_reserve_out: int


class SwapEngine:
    """Quotes and executes swaps against a single pool.

    Args:
        fee_bps: Fee deducted from the input amount (30 = 0.3%)
        max_price_impact_bps: Largest accepted price impact
    """

    def __init__(self, fee_bps: int, max_price_impact_bps: int) -> None:
        self.fee_bps = fee_bps
        self.max_price_impact_bps = max_price_impact_bps

    @staticmethod
    def get_amount_out(amount_in_after_fee: int, reserve_in: int, reserve_out: int) -> int:
        """Output amount for an input that already had the fee deducted."""
        if amount_in_after_fee <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return 0
        numerator = S(reserve_out) * S(amount_in_after_fee)
        denominator = S(reserve_in) + S(amount_in_after_fee)
        return (numerator // denominator).value

    def quote(self, pool: Pool, asset_in: str, amount_in: int) -> SwapQuote:
        """Compute a swap outcome without touching the pool.

        Raises:
            ZeroAmount: If amount_in is zero
            InvalidToken: If asset_in is not one of the pool's assets
            InsufficientLiquidity: If the pool holds no reserves
        """
        if amount_in <= 0:
            raise ZeroAmount("Swap input must be positive")
        side_in = pool.side_of(normalize_asset(asset_in))
        reserve_in, reserve_out = pool.reserves_for(side_in)
        if reserve_in == 0 or reserve_out == 0:
            raise InsufficientLiquidity(f"Pool {pool.pool_id} has no reserves")

        in_after_fee = amount_after_fee(amount_in, self.fee_bps)
        amount_out = self.get_amount_out(in_after_fee, reserve_in, reserve_out)
        impact = price_impact_bps(reserve_in, reserve_out, amount_in, amount_out)

        return SwapQuote(
            pool_id=pool.pool_id,
            side_in=side_in,
            asset_in=pool.asset(side_in),
            asset_out=pool.asset(side_in.opposite),
            amount_in=amount_in,
            amount_in_after_fee=in_after_fee,
            amount_out=amount_out,
            fee=amount_in - in_after_fee,
            price_impact_bps=impact,
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )

    def plan_swap(
        self,
        pool: Pool,
        asset_in: str,
        amount_in: int,
        min_amount_out: int,
        deadline: int,
        *,
        now: int,
    ) -> SwapPlan:
        """Validate a swap against every guard.

        Raises:
            ZeroAmount: If amount_in is zero
            InvalidToken: If asset_in is not one of the pool's assets
            SwapExpired: If the deadline has passed
            InsufficientLiquidity: If the swap would drain the output reserve
            InvalidAmount: If the output rounds to zero
            MinOutputNotMet: If the output is below min_amount_out
            PriceImpactTooHigh: If the price impact exceeds the ceiling
            KInvariantViolated: If the reserve product would decrease
        """
        if amount_in <= 0:
            raise ZeroAmount("Swap input must be positive")
        pool.side_of(normalize_asset(asset_in))
        if now > deadline:
            raise SwapExpired(f"Swap deadline {deadline} passed at {now}")

        quote = self.quote(pool, asset_in, amount_in)

        if quote.reserve_out <= quote.amount_out:
            raise InsufficientLiquidity(
                f"Output {quote.amount_out} would drain reserve {quote.reserve_out}"
            )
        if quote.amount_out == 0:
            raise InvalidAmount("Swap output rounds to zero")
        if quote.amount_out < min_amount_out:
            raise MinOutputNotMet(f"Swap returns {quote.amount_out}, minimum is {min_amount_out}")
        if quote.price_impact_bps > self.max_price_impact_bps:
            raise PriceImpactTooHigh(
                f"Price impact {quote.price_impact_bps} bps exceeds "
                f"{self.max_price_impact_bps} bps"
            )

        new_reserve_in = (S(quote.reserve_in) + quote.amount_in).to_u128()
        new_reserve_out = (S(quote.reserve_out) - quote.amount_out).value
        k_before = S(quote.reserve_in) * S(quote.reserve_out)
        k_after = S(new_reserve_in) * S(new_reserve_out)
        if k_after < k_before:
            raise KInvariantViolated(f"Reserve product would drop from {k_before} to {k_after}")

        return SwapPlan(quote=quote, new_reserve_in=new_reserve_in, new_reserve_out=new_reserve_out)

    def commit_swap(self, pool: Pool, plan: SwapPlan) -> None:
        side_in = plan.quote.side_in
        pool.set_reserve(side_in, plan.new_reserve_in)
        pool.set_reserve(side_in.opposite, plan.new_reserve_out)
        logger.debug(
            "reserves_updated",
            pool_id=pool.pool_id,
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
        )


__all__ = ["SwapEngine", "SwapQuote", "SwapPlan"]
