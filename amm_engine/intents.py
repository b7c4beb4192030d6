"""Off-chain signed swap intents.

A trader signs the digest of an intent; anyone may later submit the
intent with the signature and the trader's public key. The digest is
the 32-byte BLAKE2b hash of the ABI encoding of the intent fields,
prefixed with a domain tag so signatures cannot be replayed against
other message types.
"""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from eth_abi import encode  # type: ignore[attr-defined]
from eth_abi.exceptions import EncodingError

from amm_engine.errors import InvalidAmount, NonceAlreadyUsed

INTENT_DOMAIN = "amm-engine/swap-intent/v1"

_INTENT_TYPES = ["string", "uint64", "string", "uint128", "uint128", "uint64", "uint64"]


@dataclass(frozen=True)
class SwapIntent:
    pool_id: int
    asset_in: str
    amount_in: int
    min_amount_out: int
    deadline: int
    nonce: int


def intent_digest(intent: SwapIntent) -> bytes:
    """Canonical 32-byte digest a trader signs.

    Raises:
        InvalidAmount: If a field does not fit its encoded width
    """
    try:
        encoded = encode(
            _INTENT_TYPES,
            [
                INTENT_DOMAIN,
                intent.pool_id,
                intent.asset_in,
                intent.amount_in,
                intent.min_amount_out,
                intent.deadline,
                intent.nonce,
            ],
        )
    except EncodingError as err:
        raise InvalidAmount(f"Intent field out of range: {err}") from err
    return hashlib.blake2b(encoded, digest_size=32).digest()


def trader_from_public_key(public_key: bytes) -> str:
    """Account identity of the holder of a public key."""
    return "0x" + public_key.hex()


class NonceBook:
    """Single-use nonces per trader.

    Hold `guard(trader)` across check, execution and consume so two
    submissions of the same intent cannot both pass the check. Guards
    are per trader; different traders never wait on each other.
    """

    def __init__(self) -> None:
        self._used: set[tuple[str, int]] = set()
        self._lock = threading.RLock()
        self._trader_locks: dict[str, threading.RLock] = {}

    @contextmanager
    def guard(self, trader: str) -> Iterator[None]:
        with self._lock:
            trader_lock = self._trader_locks.setdefault(trader, threading.RLock())
        with trader_lock:
            yield

    def is_used(self, trader: str, nonce: int) -> bool:
        with self._lock:
            return (trader, nonce) in self._used

    def check(self, trader: str, nonce: int) -> None:
        """Raises NonceAlreadyUsed if the nonce was consumed."""
        if self.is_used(trader, nonce):
            raise NonceAlreadyUsed(f"Nonce {nonce} already used by {trader}")

    def consume(self, trader: str, nonce: int) -> None:
        with self._lock:
            if (trader, nonce) in self._used:
                raise NonceAlreadyUsed(f"Nonce {nonce} already used by {trader}")
            self._used.add((trader, nonce))

    def used(self) -> list[tuple[str, int]]:
        with self._lock:
            return sorted(self._used)

    def restore(self, used: Iterable[tuple[str, int]]) -> None:
        with self._lock:
            self._used = set(used)


__all__ = [
    "INTENT_DOMAIN",
    "SwapIntent",
    "intent_digest",
    "trader_from_public_key",
    "NonceBook",
]
