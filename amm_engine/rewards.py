"""Time-proportional farming rewards per (pool, provider).

A position earns `balance * reward_rate` units per second since its
last claim. Deposits, withdrawals and claims all restart the clock;
what happens to the amount pending at that moment is decided by the
configured RewardPolicy.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from amm_engine.config import RewardPolicy
from amm_engine.errors import NotAuthorized
from amm_engine.math import U128_MAX, S


@dataclass(frozen=True)
class RewardState:
    last_claim: int
    accrued: int


class RewardAccrual:
    """Owns reward state for every (pool id, provider) pair."""

    def __init__(self, reward_rate: int, policy: RewardPolicy) -> None:
        self.reward_rate = reward_rate
        self.policy = policy
        self._states: dict[tuple[int, str], RewardState] = {}

    def state_of(self, pool_id: int, provider: str) -> RewardState | None:
        return self._states.get((pool_id, provider))

    def pending(self, pool_id: int, provider: str, balance: int, now: int) -> int:
        """Accrued plus newly earned rewards as of `now`, saturating at U128_MAX."""
        state = self.state_of(pool_id, provider)
        if state is None:
            return 0
        elapsed = max(0, now - state.last_claim)
        earned = S(balance) * S(self.reward_rate) * S(elapsed)
        return min((earned + state.accrued).value, U128_MAX)

    def plan_reset(self, pool_id: int, provider: str, balance: int, now: int) -> tuple[int, RewardState]:
        """Restart accrual after a position change.

        Returns:
            Tuple of (pending amount before the reset, new state). Under
            FORFEIT the pending amount is dropped; under CARRY it becomes
            the new accrued balance.
        """
        pending = self.pending(pool_id, provider, balance, now)
        accrued = pending if self.policy is RewardPolicy.CARRY else 0
        return pending, RewardState(last_claim=now, accrued=accrued)

    def plan_claim(self, pool_id: int, provider: str, balance: int, now: int) -> tuple[int, RewardState]:
        """Compute the claimable total and the state after paying it.

        Raises:
            NotAuthorized: If the provider has nothing to claim against
        """
        state = self.state_of(pool_id, provider)
        carried = state.accrued if state is not None else 0
        if balance <= 0 and not (self.policy is RewardPolicy.CARRY and carried > 0):
            raise NotAuthorized(f"{provider} has no liquidity in pool {pool_id}")
        total = self.pending(pool_id, provider, balance, now)
        return total, RewardState(last_claim=now, accrued=0)

    def apply(self, pool_id: int, provider: str, state: RewardState) -> None:
        self._states[(pool_id, provider)] = state

    def states(self) -> dict[tuple[int, str], RewardState]:
        return dict(self._states)

    def restore(self, states: Mapping[tuple[int, str], RewardState]) -> None:
        self._states = dict(states)


__all__ = ["RewardAccrual", "RewardState"]
