"""Append-only history of executed swaps."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from amm_engine.errors import SwapNotFound

logger = structlog.get_logger()


@dataclass(frozen=True)
class SwapRecord:
    swap_id: int
    trader: str
    pool_id: int
    asset_in: str
    asset_out: str
    amount_in: int
    amount_out: int
    fee: int
    timestamp: int


class AuditLog:
    """Swap records keyed by a monotonically increasing id starting at 1.

    Entries are never modified or removed.
    """

    def __init__(self) -> None:
        self._records: dict[int, SwapRecord] = {}
        self._last_swap_id = 0
        self._lock = threading.Lock()

    @property
    def last_swap_id(self) -> int:
        return self._last_swap_id

    def __len__(self) -> int:
        return len(self._records)

    def next_id(self) -> int:
        """Allocate the next swap id."""
        with self._lock:
            self._last_swap_id += 1
            return self._last_swap_id

    def record_swap(self, entry: SwapRecord) -> None:
        """Append an entry under an id obtained from next_id.

        Raises:
            ValueError: If the id was never allocated or is already used
        """
        with self._lock:
            if entry.swap_id > self._last_swap_id or entry.swap_id <= 0:
                raise ValueError(f"Swap id {entry.swap_id} was never allocated")
            if entry.swap_id in self._records:
                raise ValueError(f"Swap id {entry.swap_id} is already recorded")
            self._records[entry.swap_id] = entry
        logger.debug("swap_recorded", swap_id=entry.swap_id, pool_id=entry.pool_id)

    def get_swap(self, swap_id: int) -> SwapRecord:
        """Look up a swap record.

        Raises:
            SwapNotFound: If no swap has this id
        """
        record = self._records.get(swap_id)
        if record is None:
            raise SwapNotFound(f"Swap {swap_id} does not exist")
        return record

    def records(self) -> list[SwapRecord]:
        with self._lock:
            return [self._records[swap_id] for swap_id in sorted(self._records)]

    def restore(self, records: Iterable[SwapRecord], last_swap_id: int) -> None:
        restored = {record.swap_id: record for record in records}
        if restored and max(restored) > last_swap_id:
            raise ValueError(
                f"last_swap_id {last_swap_id} is below existing swap id {max(restored)}"
            )
        with self._lock:
            self._records = restored
            self._last_swap_id = last_swap_id


__all__ = ["AuditLog", "SwapRecord"]
