"""Pytest configuration and fixtures."""

import pytest

from amm_engine import AmmEngine
from amm_engine.capabilities import InMemoryAssetLedger, ManualClock
from tests.helpers import ALICE, TOKEN_A, TOKEN_B, funded_ledger, make_clock, make_engine


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at START_TIME."""
    return make_clock()


@pytest.fixture
def engine(clock: ManualClock) -> AmmEngine:
    """Accounting-only engine with default economics."""
    return make_engine(clock)


@pytest.fixture
def pool_id(engine: AmmEngine) -> int:
    """A (1000, 1000) TOKEN_A/TOKEN_B pool created by ALICE."""
    return engine.create_pool(ALICE, TOKEN_A, TOKEN_B, 1000, 1000)


@pytest.fixture
def assets() -> InMemoryAssetLedger:
    """Asset ledger with every test account funded."""
    return funded_ledger()


@pytest.fixture
def settled_engine(clock: ManualClock, assets: InMemoryAssetLedger) -> AmmEngine:
    """Engine that settles every operation against `assets`."""
    return make_engine(clock, transfers=assets)
