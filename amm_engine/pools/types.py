"""Pool record and side selection."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from amm_engine.errors import InvalidToken


class Side(str, Enum):
    """Which of a pool's two assets an operation refers to."""

    A = "a"
    B = "b"

    @property
    def opposite(self) -> Side:
        return Side.B if self is Side.A else Side.A


def normalize_asset(asset: str) -> str:
    """Strip surrounding whitespace from an asset identifier.

    Raises:
        InvalidToken: If the identifier is empty
    """
    if not isinstance(asset, str):
        raise InvalidToken(f"Asset identifier must be a string, got {type(asset).__name__}")
    cleaned = asset.strip()
    if not cleaned:
        raise InvalidToken("Asset identifier cannot be empty")
    return cleaned


@dataclass
class Pool:
    """A two-asset constant-product pool.

    `liquidity_total` always equals the sum of all provider positions
    for this pool.
    """

    pool_id: int
    asset_a: str
    asset_b: str
    reserve_a: int
    reserve_b: int
    liquidity_total: int
    created_at: int

    def side_of(self, asset: str) -> Side:
        """Resolve an asset identifier to its side of the pool.

        Raises:
            InvalidToken: If the asset is not one of the pool's assets
        """
        if asset == self.asset_a:
            return Side.A
        if asset == self.asset_b:
            return Side.B
        raise InvalidToken(f"Asset {asset} is not traded in pool {self.pool_id}")

    def asset(self, side: Side) -> str:
        return self.asset_a if side is Side.A else self.asset_b

    def reserve(self, side: Side) -> int:
        return self.reserve_a if side is Side.A else self.reserve_b

    def set_reserve(self, side: Side, value: int) -> None:
        if side is Side.A:
            self.reserve_a = value
        else:
            self.reserve_b = value

    def reserves_for(self, side_in: Side) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        return self.reserve(side_in), self.reserve(side_in.opposite)

    @property
    def has_liquidity(self) -> bool:
        return self.liquidity_total > 0

    def copy(self) -> Pool:
        return replace(self)


__all__ = ["Pool", "Side", "normalize_asset"]
