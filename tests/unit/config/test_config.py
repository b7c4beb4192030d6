"""Tests for EngineConfig."""

from dataclasses import FrozenInstanceError

import pytest

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig, RewardPolicy
from amm_engine.constants import (
    FEE_BPS,
    MAX_PRICE_IMPACT_BPS,
    MIN_LOCK_PERIOD,
    RATIO_TOLERANCE_BPS,
)


class TestDefaults:
    def test_protocol_defaults(self):
        config = EngineConfig()
        assert config.fee_bps == FEE_BPS == 30
        assert config.ratio_tolerance_bps == RATIO_TOLERANCE_BPS == 50
        assert config.max_price_impact_bps == MAX_PRICE_IMPACT_BPS == 1000
        assert config.min_lock_period == MIN_LOCK_PERIOD == 86_400
        assert config.reward_rate == 1
        assert config.reward_policy is RewardPolicy.CARRY

    def test_default_instance(self):
        assert DEFAULT_ENGINE_CONFIG == EngineConfig()

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_ENGINE_CONFIG.owner = "mallory"  # type: ignore[misc]


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"owner": ""},
            {"fee_bps": -1},
            {"fee_bps": 10_000},
            {"ratio_tolerance_bps": 10_001},
            {"max_price_impact_bps": -1},
            {"min_lock_period": -1},
            {"reward_rate": -1},
            {"block_time": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            EngineConfig(**overrides)


class TestFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert EngineConfig.from_env({}) == EngineConfig()

    def test_reads_variables(self):
        config = EngineConfig.from_env(
            {
                "AMM_OWNER": "admin",
                "AMM_FEE_BPS": "25",
                "AMM_RATIO_TOLERANCE_BPS": "100",
                "AMM_MAX_PRICE_IMPACT_BPS": "500",
                "AMM_MIN_LOCK_PERIOD": "3600",
                "AMM_REWARD_RATE": "2",
                "AMM_REWARD_POLICY": "FORFEIT",
                "AMM_FEE_ASSET": "USDC",
                "AMM_BLOCK_TIME": "12",
            }
        )
        assert config == EngineConfig(
            owner="admin",
            fee_bps=25,
            ratio_tolerance_bps=100,
            max_price_impact_bps=500,
            min_lock_period=3600,
            reward_rate=2,
            reward_policy=RewardPolicy.FORFEIT,
            fee_asset="USDC",
            block_time=12,
        )

    def test_blank_value_uses_default(self):
        assert EngineConfig.from_env({"AMM_FEE_BPS": ""}).fee_bps == FEE_BPS

    def test_non_integer_rejected(self):
        with pytest.raises(ValueError, match="AMM_FEE_BPS"):
            EngineConfig.from_env({"AMM_FEE_BPS": "thirty"})

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig.from_env({"AMM_REWARD_POLICY": "burn"})

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig.from_env({"AMM_FEE_BPS": "10000"})
