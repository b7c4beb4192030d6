"""Shared wire types for API payloads and snapshots.

Amounts are Python ints internally and decimal strings on the wire, so
u128 values survive JSON clients that only have 53-bit integers.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field, PlainSerializer

from amm_engine.math import U128_MAX

U64_MAX = 2**64 - 1


def parse_u128(value: Any) -> int:
    """Validate a u128 given as an int or a decimal integer string.

    Raises:
        ValueError: If value is not a non-negative integer within u128 range
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be an integer, got bool")
    if isinstance(value, int):
        int_value = value
    elif isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"Amount must be a decimal integer string: '{value}'")
        int_value = int(value)
    else:
        raise ValueError(f"Amount must be string or int, got {type(value).__name__}")

    if int_value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    if int_value > U128_MAX:
        raise ValueError(f"Amount overflow: {value} > 2^128-1")
    return int_value


# Unsigned 128-bit amount: int in Python, decimal string in JSON
Amount = Annotated[
    int,
    BeforeValidator(parse_u128),
    PlainSerializer(str, return_type=str, when_used="json"),
    Field(description="Unsigned 128-bit amount as decimal string"),
]

# Seconds since the epoch (or a duration in seconds)
Timestamp = Annotated[int, Field(ge=0, le=U64_MAX)]

# Asset (contract) identifier
AssetId = Annotated[str, Field(min_length=1, max_length=128)]

# Arbitrary hex bytes
HexBytes = Annotated[str, Field(pattern=r"^0x([a-fA-F0-9]{2})*$")]


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(value[2:])


def bytes_to_hex(value: bytes) -> str:
    return "0x" + value.hex()
