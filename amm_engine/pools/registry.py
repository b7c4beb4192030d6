"""Pool registry: owns pool records and pool id allocation."""

from __future__ import annotations

import threading
from collections.abc import Iterable

import structlog

from amm_engine.errors import InvalidAmount, PoolNotFound, SameAsset
from amm_engine.math import S, isqrt
from amm_engine.pools.types import Pool, normalize_asset

logger = structlog.get_logger()


class PoolRegistry:
    """Registry of pools keyed by sequential numeric id.

    Ids start at 1 and are never reused. The registry lock only guards
    id allocation and the pool table itself; mutating a pool's reserves
    is serialized by the caller's per-pool lock.
    """

    def __init__(self) -> None:
        self._pools: dict[int, Pool] = {}
        self._last_pool_id = 0
        self._lock = threading.Lock()

    @property
    def last_pool_id(self) -> int:
        return self._last_pool_id

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, pool_id: object) -> bool:
        return pool_id in self._pools

    @staticmethod
    def prepare_pool(asset_a: str, asset_b: str, amount_a: int, amount_b: int) -> tuple[str, str, int]:
        """Validate a new pool and compute its bootstrap liquidity.

        Returns:
            Tuple of (asset_a, asset_b, initial_liquidity) with normalized asset ids

        Raises:
            InvalidToken: If an asset identifier is empty
            SameAsset: If both assets are the same
            InvalidAmount: If either amount is zero
        """
        asset_a = normalize_asset(asset_a)
        asset_b = normalize_asset(asset_b)
        if asset_a == asset_b:
            raise SameAsset(f"Pool assets must differ, got {asset_a} twice")
        if amount_a <= 0 or amount_b <= 0:
            raise InvalidAmount(f"Initial amounts must be positive, got {amount_a} and {amount_b}")
        liquidity = isqrt((S(amount_a) * S(amount_b)).value)
        return asset_a, asset_b, liquidity

    def allocate_pool_id(self) -> int:
        """Reserve the next pool id. Ids are consumed even if creation later fails."""
        with self._lock:
            self._last_pool_id += 1
            return self._last_pool_id

    def register(self, pool: Pool) -> None:
        """Store a pool under an id obtained from allocate_pool_id."""
        with self._lock:
            if pool.pool_id in self._pools:
                raise ValueError(f"Pool {pool.pool_id} is already registered")
            if pool.pool_id > self._last_pool_id:
                raise ValueError(f"Pool id {pool.pool_id} was never allocated")
            self._pools[pool.pool_id] = pool

        logger.debug(
            "pool_registered",
            pool_id=pool.pool_id,
            asset_a=pool.asset_a,
            asset_b=pool.asset_b,
            liquidity=pool.liquidity_total,
        )

    def get_pool(self, pool_id: int) -> Pool:
        """Get the live pool record.

        Raises:
            PoolNotFound: If no pool has this id
        """
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFound(f"Pool {pool_id} does not exist")
        return pool

    def pool_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._pools)

    def restore(self, pools: Iterable[Pool], last_pool_id: int) -> None:
        """Replace the registry contents (used when loading a snapshot)."""
        restored = {pool.pool_id: pool for pool in pools}
        if restored and max(restored) > last_pool_id:
            raise ValueError(
                f"last_pool_id {last_pool_id} is below existing pool id {max(restored)}"
            )
        with self._lock:
            self._pools = restored
            self._last_pool_id = last_pool_id


__all__ = ["PoolRegistry"]
