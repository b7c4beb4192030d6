"""Tests for FeeTreasury."""

import pytest

from amm_engine.errors import InsufficientBalance, ZeroAmount
from amm_engine.fees import FeeTreasury
from amm_engine.math import U128_MAX, U128Overflow


class TestAccumulate:
    def test_accumulates(self):
        treasury = FeeTreasury()
        treasury.accumulate(1)
        treasury.accumulate(2)
        assert treasury.accumulated == 3

    def test_zero_fee_is_noop(self):
        treasury = FeeTreasury(5)
        treasury.accumulate(0)
        assert treasury.accumulated == 5

    def test_overflow_raises(self):
        treasury = FeeTreasury(U128_MAX)
        with pytest.raises(U128Overflow):
            treasury.accumulate(1)
        assert treasury.accumulated == U128_MAX


class TestWithdraw:
    def test_returns_remaining(self):
        treasury = FeeTreasury(10)
        assert treasury.withdraw(4) == 6
        assert treasury.accumulated == 6

    def test_withdraw_everything(self):
        treasury = FeeTreasury(10)
        assert treasury.withdraw(10) == 0

    def test_zero_rejected(self):
        with pytest.raises(ZeroAmount):
            FeeTreasury(10).withdraw(0)

    def test_more_than_collected_rejected(self):
        treasury = FeeTreasury(10)
        with pytest.raises(InsufficientBalance):
            treasury.withdraw(11)
        assert treasury.accumulated == 10

    def test_settle_runs_before_deduction(self):
        treasury = FeeTreasury(10)
        seen = []
        treasury.withdraw(3, settle=lambda: seen.append(treasury.accumulated))
        assert seen == [10]

    def test_failed_settle_keeps_balance(self):
        treasury = FeeTreasury(10)

        def fail():
            raise RuntimeError("transfer rejected")

        with pytest.raises(RuntimeError):
            treasury.withdraw(3, settle=fail)
        assert treasury.accumulated == 10

    def test_settle_not_called_when_balance_insufficient(self):
        treasury = FeeTreasury(1)
        calls = []
        with pytest.raises(InsufficientBalance):
            treasury.withdraw(2, settle=lambda: calls.append(1))
        assert calls == []

    def test_restore(self):
        treasury = FeeTreasury()
        treasury.restore(99)
        assert treasury.accumulated == 99
