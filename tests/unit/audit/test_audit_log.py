"""Tests for the append-only swap audit log."""

import pytest

from amm_engine.audit import AuditLog, SwapRecord
from amm_engine.errors import SwapNotFound
from tests.helpers import BOB, START_TIME, TOKEN_A, TOKEN_B


def make_record(swap_id: int, trader: str = BOB) -> SwapRecord:
    return SwapRecord(
        swap_id=swap_id,
        trader=trader,
        pool_id=1,
        asset_in=TOKEN_A,
        asset_out=TOKEN_B,
        amount_in=100,
        amount_out=90,
        fee=1,
        timestamp=START_TIME,
    )


@pytest.fixture
def log() -> AuditLog:
    return AuditLog()


class TestAuditLog:
    def test_ids_start_at_one_and_increase(self, log):
        assert [log.next_id() for _ in range(3)] == [1, 2, 3]
        assert log.last_swap_id == 3

    def test_record_and_get(self, log):
        record = make_record(log.next_id())
        log.record_swap(record)

        assert log.get_swap(1) == record
        assert len(log) == 1

    def test_unknown_swap_raises(self, log):
        with pytest.raises(SwapNotFound):
            log.get_swap(1)

    def test_unallocated_id_rejected(self, log):
        with pytest.raises(ValueError):
            log.record_swap(make_record(1))

    def test_duplicate_id_rejected(self, log):
        log.record_swap(make_record(log.next_id()))
        with pytest.raises(ValueError):
            log.record_swap(make_record(1, trader="mallory"))
        assert log.get_swap(1).trader == BOB

    def test_records_ordered_by_id(self, log):
        first, second = log.next_id(), log.next_id()
        log.record_swap(make_record(second))
        log.record_swap(make_record(first))
        assert [r.swap_id for r in log.records()] == [1, 2]

    def test_records_are_immutable(self, log):
        record = make_record(log.next_id())
        with pytest.raises(AttributeError):
            record.amount_out = 0  # type: ignore[misc]

    def test_restore(self, log):
        log.restore([make_record(2)], last_swap_id=5)
        assert log.get_swap(2).swap_id == 2
        assert log.next_id() == 6

    def test_restore_rejects_counter_below_record(self, log):
        with pytest.raises(ValueError):
            log.restore([make_record(6)], last_swap_id=5)
