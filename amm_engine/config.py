"""Engine configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from amm_engine.constants import (
    BLOCK_TIME,
    FEE_ASSET,
    FEE_BPS,
    MAX_PRICE_IMPACT_BPS,
    MIN_LOCK_PERIOD,
    RATIO_TOLERANCE_BPS,
    REWARD_RATE,
)
from amm_engine.math import BPS_DENOMINATOR


class RewardPolicy(str, Enum):
    """What happens to pending rewards when a position changes."""

    # Pending rewards are discarded on add/remove
    FORFEIT = "forfeit"
    # Pending rewards are settled into the accrued balance and paid on the next claim
    CARRY = "carry"


@dataclass(frozen=True)
class EngineConfig:
    """Centralized configuration for the engine.

    Attributes:
        owner: Account allowed to call owner-gated operations. Fixed for
            the lifetime of the engine.
        fee_bps: Swap fee deducted from the input amount
        ratio_tolerance_bps: Allowed deposit ratio deviation
        max_price_impact_bps: Swap price impact ceiling
        min_lock_period: Shortest accepted lock, in seconds
        reward_rate: Reward units per share per second
        reward_policy: Forfeit or carry pending rewards on add/remove
        fee_asset: Asset used to settle fee withdrawals
        block_time: Seconds per block for SystemClock heights
    """

    owner: str = "owner"
    fee_bps: int = FEE_BPS
    ratio_tolerance_bps: int = RATIO_TOLERANCE_BPS
    max_price_impact_bps: int = MAX_PRICE_IMPACT_BPS
    min_lock_period: int = MIN_LOCK_PERIOD
    reward_rate: int = REWARD_RATE
    reward_policy: RewardPolicy = RewardPolicy.CARRY
    fee_asset: str = FEE_ASSET
    block_time: int = BLOCK_TIME

    def __post_init__(self) -> None:
        if not self.owner:
            raise ValueError("Owner cannot be empty")
        if not 0 <= self.fee_bps < BPS_DENOMINATOR:
            raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {self.fee_bps}")
        if not 0 <= self.ratio_tolerance_bps <= BPS_DENOMINATOR:
            raise ValueError(f"ratio_tolerance_bps out of range: {self.ratio_tolerance_bps}")
        if not 0 <= self.max_price_impact_bps <= BPS_DENOMINATOR:
            raise ValueError(f"max_price_impact_bps out of range: {self.max_price_impact_bps}")
        if self.min_lock_period < 0:
            raise ValueError(f"min_lock_period cannot be negative: {self.min_lock_period}")
        if self.reward_rate < 0:
            raise ValueError(f"reward_rate cannot be negative: {self.reward_rate}")
        if self.block_time <= 0:
            raise ValueError(f"block_time must be positive: {self.block_time}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a configuration from AMM_* environment variables.

        Unset variables fall back to the defaults.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _int(name: str, default: int) -> int:
            raw = env.get(name)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError as err:
                raise ValueError(f"{name} must be an integer, got {raw!r}") from err

        return cls(
            owner=env.get("AMM_OWNER", defaults.owner),
            fee_bps=_int("AMM_FEE_BPS", defaults.fee_bps),
            ratio_tolerance_bps=_int("AMM_RATIO_TOLERANCE_BPS", defaults.ratio_tolerance_bps),
            max_price_impact_bps=_int("AMM_MAX_PRICE_IMPACT_BPS", defaults.max_price_impact_bps),
            min_lock_period=_int("AMM_MIN_LOCK_PERIOD", defaults.min_lock_period),
            reward_rate=_int("AMM_REWARD_RATE", defaults.reward_rate),
            reward_policy=RewardPolicy(
                env.get("AMM_REWARD_POLICY", defaults.reward_policy.value).lower()
            ),
            fee_asset=env.get("AMM_FEE_ASSET", defaults.fee_asset),
            block_time=_int("AMM_BLOCK_TIME", defaults.block_time),
        )


DEFAULT_ENGINE_CONFIG = EngineConfig()
