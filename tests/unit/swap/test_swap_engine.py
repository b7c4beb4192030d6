"""Tests for SwapEngine quoting and swap guards."""

import pytest

from amm_engine.errors import (
    InsufficientLiquidity,
    InvalidAmount,
    InvalidToken,
    KInvariantViolated,
    MinOutputNotMet,
    PriceImpactTooHigh,
    SwapExpired,
    ZeroAmount,
)
from amm_engine.swap import SwapEngine
from tests.helpers import START_TIME, TOKEN_A, TOKEN_B, TOKEN_C, make_pool

DEADLINE = START_TIME + 60


@pytest.fixture
def swaps() -> SwapEngine:
    return SwapEngine(fee_bps=30, max_price_impact_bps=1000)


def execute(swaps, pool, asset_in, amount_in, min_out=0, deadline=DEADLINE, now=START_TIME):
    plan = swaps.plan_swap(pool, asset_in, amount_in, min_out, deadline, now=now)
    swaps.commit_swap(pool, plan)
    return plan.quote


class TestGetAmountOut:
    def test_constant_product_formula(self):
        assert SwapEngine.get_amount_out(99, 1000, 1000) == 90

    @pytest.mark.parametrize("args", [(0, 1000, 1000), (99, 0, 1000), (99, 1000, 0)])
    def test_degenerate_inputs_return_zero(self, args):
        assert SwapEngine.get_amount_out(*args) == 0


class TestQuote:
    def test_fee_and_output(self, swaps):
        """100 in at 30 bps: 99 after fee, 1000*99/1099 = 90 out."""
        quote = swaps.quote(make_pool(), TOKEN_A, 100)

        assert quote.amount_in == 100
        assert quote.amount_in_after_fee == 99
        assert quote.fee == 1
        assert quote.amount_out == 90
        assert quote.price_impact_bps == 1000
        assert quote.asset_in == TOKEN_A
        assert quote.asset_out == TOKEN_B

    def test_reverse_direction(self, swaps):
        quote = swaps.quote(make_pool(1000, 2000), TOKEN_B, 100)
        # 1000 * 99 / 2099 = 47.16
        assert quote.amount_out == 47
        assert quote.reserve_in == 2000
        assert quote.reserve_out == 1000

    def test_quote_is_read_only_and_repeatable(self, swaps):
        pool = make_pool()
        first = swaps.quote(pool, TOKEN_A, 100)
        second = swaps.quote(pool, TOKEN_A, 100)

        assert first == second
        assert (pool.reserve_a, pool.reserve_b) == (1000, 1000)

    def test_asset_id_is_normalized(self, swaps):
        assert swaps.quote(make_pool(), f" {TOKEN_A} ", 100).asset_in == TOKEN_A

    def test_zero_amount_rejected(self, swaps):
        with pytest.raises(ZeroAmount):
            swaps.quote(make_pool(), TOKEN_A, 0)

    def test_unknown_asset_rejected(self, swaps):
        with pytest.raises(InvalidToken):
            swaps.quote(make_pool(), TOKEN_C, 100)

    def test_empty_pool_rejected(self, swaps):
        with pytest.raises(InsufficientLiquidity):
            swaps.quote(make_pool(0, 0, 0), TOKEN_A, 100)


class TestExecuteSwap:
    def test_reserves_after_swap(self, swaps):
        """The full input, fee included, joins the input reserve."""
        pool = make_pool()
        quote = execute(swaps, pool, TOKEN_A, 100)

        assert quote.amount_out == 90
        assert (pool.reserve_a, pool.reserve_b) == (1100, 910)

    def test_swap_b_for_a(self, swaps):
        pool = make_pool()
        execute(swaps, pool, TOKEN_B, 100)
        assert (pool.reserve_a, pool.reserve_b) == (910, 1100)

    def test_product_never_decreases(self, swaps):
        pool = make_pool(1_000_000, 1_000_000)
        for asset, amount in [(TOKEN_A, 5000), (TOKEN_B, 7919), (TOKEN_A, 1), (TOKEN_B, 333)]:
            k_before = pool.reserve_a * pool.reserve_b
            try:
                execute(swaps, pool, asset, amount)
            except InvalidAmount:
                continue
            assert pool.reserve_a * pool.reserve_b >= k_before

    def test_zero_amount_checked_before_deadline(self, swaps):
        with pytest.raises(ZeroAmount):
            execute(swaps, make_pool(), TOKEN_A, 0, now=DEADLINE + 1)

    def test_unknown_asset_checked_before_deadline(self, swaps):
        with pytest.raises(InvalidToken):
            execute(swaps, make_pool(), TOKEN_C, 100, now=DEADLINE + 1)

    def test_expired(self, swaps):
        pool = make_pool()
        with pytest.raises(SwapExpired):
            execute(swaps, pool, TOKEN_A, 100, now=DEADLINE + 1)
        assert (pool.reserve_a, pool.reserve_b) == (1000, 1000)

    def test_deadline_is_inclusive(self, swaps):
        execute(swaps, make_pool(), TOKEN_A, 100, now=DEADLINE)

    def test_output_rounding_to_zero_rejected(self, swaps):
        with pytest.raises(InvalidAmount):
            execute(swaps, make_pool(1_000_000, 1), TOKEN_A, 1000)

    def test_min_output(self, swaps):
        pool = make_pool()
        with pytest.raises(MinOutputNotMet):
            execute(swaps, pool, TOKEN_A, 100, min_out=91)
        assert (pool.reserve_a, pool.reserve_b) == (1000, 1000)
        execute(swaps, pool, TOKEN_A, 100, min_out=90)

    def test_price_impact_at_ceiling_passes(self, swaps):
        """Impact of exactly 1000 bps is accepted."""
        quote = execute(swaps, make_pool(), TOKEN_A, 100)
        assert quote.price_impact_bps == 1000

    def test_price_impact_above_ceiling_rejected(self, swaps):
        pool = make_pool()
        with pytest.raises(PriceImpactTooHigh):
            execute(swaps, pool, TOKEN_A, 101)
        assert (pool.reserve_a, pool.reserve_b) == (1000, 1000)

    def test_ceiling_enforced_on_low_priced_pool(self, swaps):
        """Spot price 1e-24 must not hide a ~50% impact."""
        pool = make_pool(10**30, 10**6)
        with pytest.raises(PriceImpactTooHigh):
            execute(swaps, pool, TOKEN_A, 10**30)
        assert (pool.reserve_a, pool.reserve_b) == (10**30, 10**6)

    def test_small_trade_on_low_priced_pool(self, swaps):
        quote = execute(swaps, make_pool(10**30, 10**6), TOKEN_A, 10**28)
        assert quote.amount_out == 9871
        assert quote.price_impact_bps == 129

    def test_custom_ceiling(self):
        strict = SwapEngine(fee_bps=30, max_price_impact_bps=500)
        with pytest.raises(PriceImpactTooHigh):
            execute(strict, make_pool(), TOKEN_A, 100)


class OverpayingSwapEngine(SwapEngine):
    """Pays one unit more than the curve allows."""

    @staticmethod
    def get_amount_out(amount_in_after_fee, reserve_in, reserve_out):
        return SwapEngine.get_amount_out(amount_in_after_fee, reserve_in, reserve_out) + 1


class TestConstantProductGuard:
    def test_output_above_curve_rejected(self):
        """1100 * 909 < 1000 * 1000, so paying 91 must fail."""
        swaps = OverpayingSwapEngine(fee_bps=30, max_price_impact_bps=1000)
        pool = make_pool()

        with pytest.raises(KInvariantViolated):
            execute(swaps, pool, TOKEN_A, 100)
        assert (pool.reserve_a, pool.reserve_b) == (1000, 1000)
