"""Injectable collaborators consumed by the engine.

The engine never reads the wall clock, inspects contract code, checks
signatures or moves assets itself. Each of those is a small protocol
so that production wiring and tests can supply their own backends.
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import structlog
from ecdsa import SECP256k1, BadDigestError, BadSignatureError, MalformedPointError, VerifyingKey

from amm_engine.constants import BLOCK_TIME
from amm_engine.errors import TransferFailed

logger = structlog.get_logger()


# =============================================================================
# Clock
# =============================================================================


@runtime_checkable
class Clock(Protocol):
    """Source of the current timestamp (seconds) and block height."""

    def now(self) -> int: ...

    def height(self) -> int: ...


class SystemClock:
    """Wall-clock time with heights derived from a fixed block time."""

    def __init__(self, block_time: int = BLOCK_TIME) -> None:
        if block_time <= 0:
            raise ValueError(f"block_time must be positive: {block_time}")
        self.block_time = block_time

    def now(self) -> int:
        return int(time.time())

    def height(self) -> int:
        return self.now() // self.block_time


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: int = 0, height: int = 0) -> None:
        self._now = now
        self._height = height

    def now(self) -> int:
        return self._now

    def height(self) -> int:
        return self._height

    def advance(self, seconds: int, blocks: int = 1) -> None:
        """Move time forward by `seconds` and height by `blocks`."""
        if seconds < 0 or blocks < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        self._height += blocks

    def set(self, now: int) -> None:
        if now < self._now:
            raise ValueError("Clock cannot move backwards")
        self._now = now


# =============================================================================
# Code attestation
# =============================================================================


@runtime_checkable
class CodeAttestation(Protocol):
    """Resolves an asset contract to the hash of its deployed code."""

    def code_hash(self, contract: str) -> bytes | None:
        """Return the code hash, or None when the contract is unknown."""
        ...


class StaticCodeAttestation:
    """Code hashes from a fixed mapping."""

    def __init__(self, hashes: Mapping[str, bytes] | None = None) -> None:
        self._hashes = dict(hashes or {})

    def register(self, contract: str, code_hash: bytes) -> None:
        self._hashes[contract] = code_hash

    def code_hash(self, contract: str) -> bytes | None:
        return self._hashes.get(contract)


# =============================================================================
# Signature verification
# =============================================================================


@runtime_checkable
class SignatureVerifier(Protocol):
    """Checks a signature over a message digest."""

    def verify(self, digest: bytes, signature: bytes, public_key: bytes) -> bool: ...


class Secp256k1Verifier:
    """ECDSA over secp256k1.

    Public keys are raw (64 bytes) or SEC1-encoded (33/65 bytes);
    signatures are the 64-byte r || s concatenation.
    """

    def verify(self, digest: bytes, signature: bytes, public_key: bytes) -> bool:
        try:
            key = VerifyingKey.from_string(public_key, curve=SECP256k1)
            return bool(key.verify_digest(signature, digest))
        except (BadSignatureError, BadDigestError, MalformedPointError, ValueError) as exc:
            logger.debug("signature_rejected", reason=type(exc).__name__)
            return False


# =============================================================================
# Asset transfer
# =============================================================================


@dataclass(frozen=True)
class Transfer:
    """One asset movement between two accounts."""

    asset: str
    sender: str
    recipient: str
    amount: int


@runtime_checkable
class AssetTransfer(Protocol):
    """Moves balances of external assets.

    `settle` is all-or-nothing: either every transfer in the batch is
    applied or none is, and failure raises TransferFailed.
    """

    def settle(self, transfers: Sequence[Transfer]) -> None: ...


class InMemoryAssetLedger:
    """Reference asset ledger keeping balances per (account, asset).

    Receiving accounts need no prior balance; every net debit in a batch
    must be covered by the sender's current balance.
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = defaultdict(int)
        self._lock = threading.Lock()

    def mint(self, account: str, asset: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot mint a negative amount: {amount}")
        with self._lock:
            self._balances[(account, asset)] += amount

    def balance_of(self, account: str, asset: str) -> int:
        return self._balances.get((account, asset), 0)

    def settle(self, transfers: Sequence[Transfer]) -> None:
        with self._lock:
            self._settle(transfers)

    def _settle(self, transfers: Sequence[Transfer]) -> None:
        # Net debits per (account, asset) across the whole batch
        debits: dict[tuple[str, str], int] = defaultdict(int)
        for transfer in transfers:
            if transfer.amount < 0:
                raise TransferFailed(f"Negative transfer amount: {transfer.amount}")
            debits[(transfer.sender, transfer.asset)] += transfer.amount
            debits[(transfer.recipient, transfer.asset)] -= transfer.amount

        for (account, asset), debit in debits.items():
            if debit > 0 and self.balance_of(account, asset) < debit:
                raise TransferFailed(
                    f"Account {account} holds {self.balance_of(account, asset)} {asset}, "
                    f"needs {debit}"
                )

        for transfer in transfers:
            self._balances[(transfer.sender, transfer.asset)] -= transfer.amount
            self._balances[(transfer.recipient, transfer.asset)] += transfer.amount


__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "CodeAttestation",
    "StaticCodeAttestation",
    "SignatureVerifier",
    "Secp256k1Verifier",
    "Transfer",
    "AssetTransfer",
    "InMemoryAssetLedger",
]
