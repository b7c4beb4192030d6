"""Tests for engine snapshots and restoration."""

import pytest
from pydantic import ValidationError

from amm_engine import AmmEngine
from amm_engine.errors import NonceAlreadyUsed
from amm_engine.state import EngineSnapshot
from tests.helpers import (
    ALICE,
    BOB,
    CAROL,
    ONE_DAY,
    OWNER,
    START_TIME,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    make_config,
    make_intent,
    make_signing_key,
    public_key_of,
    sign_intent,
)

DEADLINE = START_TIME + 3600


@pytest.fixture
def busy_engine(engine, pool_id, clock) -> AmmEngine:
    """Engine with pools, positions, a lock, rewards, swaps and a used nonce."""
    engine.create_pool(CAROL, TOKEN_A, TOKEN_C, 500, 2000)
    engine.add_liquidity_with_lock(BOB, pool_id, 100, 100, 0, ONE_DAY)
    clock.advance(30)
    engine.execute_swap(CAROL, pool_id, TOKEN_A, 50, 0, DEADLINE)

    key = make_signing_key()
    intent = make_intent(pool_id=pool_id, asset_in=TOKEN_B, amount_in=50, nonce=7)
    engine.execute_signed_swap(intent, sign_intent(key, intent), public_key_of(key))

    engine.approve_code_hash(OWNER, b"\xab" * 32)
    clock.advance(10)
    engine.claim_rewards(ALICE, pool_id)
    return engine


def round_trip(engine: AmmEngine, clock) -> AmmEngine:
    raw = engine.snapshot().model_dump_json()
    return AmmEngine.restore(EngineSnapshot.model_validate_json(raw), make_config(), clock=clock)


class TestRoundTrip:
    def test_state_survives_json(self, busy_engine, clock):
        restored = round_trip(busy_engine, clock)

        assert restored.snapshot() == busy_engine.snapshot()
        assert restored.list_pools() == busy_engine.list_pools()
        assert restored.get_platform_fees() == busy_engine.get_platform_fees() == 2
        assert restored.get_lock(1, BOB) == busy_engine.get_lock(1, BOB)
        assert restored.get_swap(2) == busy_engine.get_swap(2)
        assert restored.is_code_hash_approved(b"\xab" * 32)

    def test_amounts_are_strings_on_the_wire(self, busy_engine):
        data = busy_engine.snapshot().model_dump(mode="json")
        assert data["pools"][0]["reserve_a"] == str(busy_engine.get_pool(1).reserve_a)
        assert data["platform_fees"] == "2"

    def test_counters_continue(self, busy_engine, clock):
        restored = round_trip(busy_engine, clock)

        assert restored.create_pool(ALICE, TOKEN_B, TOKEN_C, 10, 10) == 3
        result = restored.execute_swap(BOB, 1, TOKEN_A, 50, 0, DEADLINE)
        assert result.swap_id == 3

    def test_used_nonces_stay_used(self, busy_engine, clock):
        restored = round_trip(busy_engine, clock)

        key = make_signing_key()
        intent = make_intent(pool_id=1, asset_in=TOKEN_B, amount_in=50, nonce=7)
        with pytest.raises(NonceAlreadyUsed):
            restored.execute_signed_swap(intent, sign_intent(key, intent), public_key_of(key))

    def test_rewards_resume(self, busy_engine, clock):
        restored = round_trip(busy_engine, clock)
        clock.advance(5)
        assert restored.get_rewards(1, ALICE) == busy_engine.get_rewards(1, ALICE)

    def test_empty_engine(self, engine, clock):
        restored = round_trip(engine, clock)
        assert restored.list_pools() == []
        assert restored.create_pool(ALICE, TOKEN_A, TOKEN_B, 10, 10) == 1


class TestValidation:
    @pytest.fixture
    def data(self, busy_engine) -> dict:
        return busy_engine.snapshot().model_dump(mode="json")

    def test_valid_data_accepted(self, data):
        EngineSnapshot.model_validate(data)

    def test_unknown_version_rejected(self, data):
        data["version"] = 99
        with pytest.raises(ValidationError, match="version"):
            EngineSnapshot.model_validate(data)

    def test_liquidity_total_must_match_positions(self, data):
        data["positions"][0]["balance"] = str(int(data["positions"][0]["balance"]) + 1)
        with pytest.raises(ValidationError, match="liquidity_total"):
            EngineSnapshot.model_validate(data)

    def test_pool_id_beyond_counter_rejected(self, data):
        data["last_pool_id"] = 1
        with pytest.raises(ValidationError, match="last_pool_id"):
            EngineSnapshot.model_validate(data)

    def test_orphan_position_rejected(self, data):
        data["positions"].append({"pool_id": 9, "provider": ALICE, "balance": "5"})
        with pytest.raises(ValidationError, match="unknown pools"):
            EngineSnapshot.model_validate(data)

    def test_swap_id_beyond_counter_rejected(self, data):
        data["last_swap_id"] = 1
        with pytest.raises(ValidationError, match="last_swap_id"):
            EngineSnapshot.model_validate(data)

    def test_amount_above_u128_rejected(self, data):
        data["platform_fees"] = str(2**128)
        with pytest.raises(ValidationError):
            EngineSnapshot.model_validate(data)

    @pytest.mark.parametrize("section,label", [("locks", "Locks"), ("rewards", "Rewards")])
    def test_orphan_lock_or_reward_rejected(self, data, section, label):
        data[section].append({**data[section][0], "pool_id": 9})
        with pytest.raises(ValidationError, match=f"{label} reference unknown pools"):
            EngineSnapshot.model_validate(data)

    @pytest.mark.parametrize("reserve", ["reserve_a", "reserve_b"])
    def test_empty_reserve_with_liquidity_rejected(self, data, reserve):
        data["pools"][0][reserve] = "0"
        with pytest.raises(ValidationError, match="empty reserve"):
            EngineSnapshot.model_validate(data)

    def test_drained_pool_accepted(self, engine, pool_id):
        engine.remove_liquidity(ALICE, pool_id, 1000)
        data = engine.snapshot().model_dump(mode="json")

        assert data["pools"][0]["liquidity_total"] == "0"
        EngineSnapshot.model_validate(data)
