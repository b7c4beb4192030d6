"""Serializable image of the engine's persisted state.

Mirrors the storage layout: a pool table keyed by id, position, lock
and reward tables keyed by (pool id, provider), the swap history keyed
by swap id, the fee accumulator and the two id counters.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from amm_engine.models.types import Amount, AssetId, HexBytes, Timestamp

SNAPSHOT_VERSION = 1


class PoolEntry(BaseModel):
    pool_id: int = Field(ge=1)
    asset_a: AssetId
    asset_b: AssetId
    reserve_a: Amount
    reserve_b: Amount
    liquidity_total: Amount
    created_at: Timestamp


class PositionEntry(BaseModel):
    pool_id: int = Field(ge=1)
    provider: str = Field(min_length=1)
    balance: Amount


class LockEntry(BaseModel):
    pool_id: int = Field(ge=1)
    provider: str = Field(min_length=1)
    locked_until: Amount
    created_at: Timestamp
    created_height: int = Field(ge=0)


class RewardEntry(BaseModel):
    pool_id: int = Field(ge=1)
    provider: str = Field(min_length=1)
    last_claim: Timestamp
    accrued: Amount


class SwapEntry(BaseModel):
    swap_id: int = Field(ge=1)
    trader: str
    pool_id: int = Field(ge=1)
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount
    fee: Amount
    timestamp: Timestamp


class NonceEntry(BaseModel):
    trader: str
    nonce: int = Field(ge=0)


class EngineSnapshot(BaseModel):
    """Complete engine state at one instant."""

    version: int = SNAPSHOT_VERSION
    last_pool_id: int = Field(default=0, ge=0)
    last_swap_id: int = Field(default=0, ge=0)
    platform_fees: Amount = 0
    pools: list[PoolEntry] = Field(default_factory=list)
    positions: list[PositionEntry] = Field(default_factory=list)
    locks: list[LockEntry] = Field(default_factory=list)
    rewards: list[RewardEntry] = Field(default_factory=list)
    swaps: list[SwapEntry] = Field(default_factory=list)
    used_nonces: list[NonceEntry] = Field(default_factory=list)
    approved_code_hashes: list[HexBytes] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_consistency(self) -> EngineSnapshot:
        if self.version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version {self.version}")
        totals: dict[int, int] = {}
        for position in self.positions:
            totals[position.pool_id] = totals.get(position.pool_id, 0) + position.balance
        for pool in self.pools:
            if pool.pool_id > self.last_pool_id:
                raise ValueError(f"Pool {pool.pool_id} exceeds last_pool_id {self.last_pool_id}")
            if totals.get(pool.pool_id, 0) != pool.liquidity_total:
                raise ValueError(
                    f"Pool {pool.pool_id} liquidity_total {pool.liquidity_total} does not "
                    f"match positions sum {totals.get(pool.pool_id, 0)}"
                )
            if pool.liquidity_total > 0 and (pool.reserve_a == 0 or pool.reserve_b == 0):
                raise ValueError(f"Pool {pool.pool_id} has outstanding liquidity but an empty reserve")
        known = {pool.pool_id for pool in self.pools}
        for label, pool_ids in (
            ("Positions", set(totals)),
            ("Locks", {lock.pool_id for lock in self.locks}),
            ("Rewards", {reward.pool_id for reward in self.rewards}),
        ):
            orphans = sorted(pool_ids - known)
            if orphans:
                raise ValueError(f"{label} reference unknown pools: {orphans}")
        for swap in self.swaps:
            if swap.swap_id > self.last_swap_id:
                raise ValueError(f"Swap {swap.swap_id} exceeds last_swap_id {self.last_swap_id}")
        return self


__all__ = [
    "SNAPSHOT_VERSION",
    "EngineSnapshot",
    "PoolEntry",
    "PositionEntry",
    "LockEntry",
    "RewardEntry",
    "SwapEntry",
    "NonceEntry",
]
