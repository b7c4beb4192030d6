"""Test helpers module for shared test utilities.

- constants: accounts, assets and times
- factories: engine, pool, ledger and signed-intent factories
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    FUNDING,
    ONE_DAY,
    OWNER,
    START_HEIGHT,
    START_TIME,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
)
from tests.helpers.factories import (
    funded_ledger,
    make_clock,
    make_config,
    make_engine,
    make_intent,
    make_pool,
    make_signing_key,
    public_key_of,
    sign_intent,
)

__all__ = [
    # Constants
    "ALICE",
    "BOB",
    "CAROL",
    "FUNDING",
    "ONE_DAY",
    "OWNER",
    "START_HEIGHT",
    "START_TIME",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    # Factories
    "funded_ledger",
    "make_clock",
    "make_config",
    "make_engine",
    "make_intent",
    "make_pool",
    "make_signing_key",
    "public_key_of",
    "sign_intent",
]
