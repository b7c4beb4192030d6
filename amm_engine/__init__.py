"""Constant-product AMM pool ledger and swap engine."""

from amm_engine.config import EngineConfig, RewardPolicy
from amm_engine.engine import AmmEngine, get_default_engine
from amm_engine.errors import AmmError, ErrorCode

__version__ = "0.1.0"
__all__ = [
    "AmmEngine",
    "AmmError",
    "EngineConfig",
    "ErrorCode",
    "RewardPolicy",
    "get_default_engine",
    "__version__",
]
