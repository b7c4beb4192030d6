"""Pydantic wire types shared by the API and snapshots."""

from amm_engine.models.types import (
    U64_MAX,
    Amount,
    AssetId,
    HexBytes,
    Timestamp,
    bytes_to_hex,
    hex_to_bytes,
    parse_u128,
)

__all__ = [
    "U64_MAX",
    "Amount",
    "AssetId",
    "HexBytes",
    "Timestamp",
    "bytes_to_hex",
    "hex_to_bytes",
    "parse_u128",
]
