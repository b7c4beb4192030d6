"""Pool records and the pool registry."""

from .registry import PoolRegistry
from .types import Pool, Side, normalize_asset

__all__ = [
    "PoolRegistry",
    "Pool",
    "Side",
    "normalize_asset",
]
