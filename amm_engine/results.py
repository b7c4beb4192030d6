"""Result types returned by engine operations."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AddLiquidityResult:
    minted: int
    amount_a: int
    amount_b: int
    # Set when the deposit carried a lock
    locked_until: int | None = None


@dataclass(frozen=True)
class RemoveLiquidityResult:
    """Payout of a withdrawal.

    `pending_rewards` reports what had accrued before the withdrawal;
    it is not paid here (see RewardPolicy for whether it is kept).
    """

    amount_a: int
    amount_b: int
    shares_burned: int
    pending_rewards: int


@dataclass(frozen=True)
class SwapResult:
    amount_out: int
    fee_paid: int
    price_impact_bps: int
    swap_id: int


__all__ = ["AddLiquidityResult", "RemoveLiquidityResult", "SwapResult"]
