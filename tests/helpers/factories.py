"""Factory functions for creating test objects.

Usage:
    from tests.helpers import make_engine, sign_intent

    engine = make_engine(reward_policy=RewardPolicy.FORFEIT)
    pool_id = engine.create_pool(ALICE, TOKEN_A, TOKEN_B, 1000, 1000)
"""

import hashlib
import math
from dataclasses import replace
from typing import Any

from ecdsa import SECP256k1, SigningKey
from ecdsa.util import sigencode_string

from amm_engine import AmmEngine, EngineConfig
from amm_engine.capabilities import InMemoryAssetLedger, ManualClock
from amm_engine.constants import TREASURY_ACCOUNT
from amm_engine.intents import SwapIntent, intent_digest
from amm_engine.pools import Pool
from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    FUNDING,
    OWNER,
    START_HEIGHT,
    START_TIME,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
)


def make_clock(now: int = START_TIME, height: int = START_HEIGHT) -> ManualClock:
    return ManualClock(now=now, height=height)


def make_config(**overrides: Any) -> EngineConfig:
    """EngineConfig with the test owner and any field overridden."""
    return replace(EngineConfig(owner=OWNER), **overrides)


def make_engine(
    clock: ManualClock | None = None,
    **overrides: Any,
) -> AmmEngine:
    """Create an accounting-only engine driven by a manual clock.

    Keyword arguments that are EngineConfig fields override the config;
    the rest (attestation, verifier, transfers) are passed to AmmEngine.
    """
    config_fields = set(EngineConfig.__dataclass_fields__)
    config_overrides = {k: v for k, v in overrides.items() if k in config_fields}
    collaborators = {k: v for k, v in overrides.items() if k not in config_fields}
    return AmmEngine(
        make_config(**config_overrides),
        clock=clock or make_clock(),
        **collaborators,
    )


def make_pool(
    reserve_a: int = 1000,
    reserve_b: int = 1000,
    liquidity_total: int | None = None,
    pool_id: int = 1,
) -> Pool:
    """Pool record for component tests; liquidity defaults to the geometric mean."""
    if liquidity_total is None:
        liquidity_total = math.isqrt(reserve_a * reserve_b)
    return Pool(
        pool_id=pool_id,
        asset_a=TOKEN_A,
        asset_b=TOKEN_B,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        liquidity_total=liquidity_total,
        created_at=START_TIME,
    )


def funded_ledger(amount: int = FUNDING) -> InMemoryAssetLedger:
    """Asset ledger where every test account holds `amount` of every test asset."""
    ledger = InMemoryAssetLedger()
    for account in (ALICE, BOB, CAROL, OWNER):
        for asset in (TOKEN_A, TOKEN_B, TOKEN_C):
            ledger.mint(account, asset, amount)
    ledger.mint(TREASURY_ACCOUNT, EngineConfig().fee_asset, amount)
    return ledger


# =============================================================================
# Signed intents
# =============================================================================


def make_signing_key(secret: int = 0xA11CE) -> SigningKey:
    return SigningKey.from_secret_exponent(secret, curve=SECP256k1)


def public_key_of(key: SigningKey) -> bytes:
    """Raw 64-byte public key."""
    return key.get_verifying_key().to_string()


def sign_intent(key: SigningKey, intent: SwapIntent) -> bytes:
    """64-byte r || s signature over the intent digest."""
    return key.sign_digest_deterministic(
        intent_digest(intent), hashfunc=hashlib.sha256, sigencode=sigencode_string
    )


def make_intent(
    pool_id: int = 1,
    asset_in: str = TOKEN_A,
    amount_in: int = 100,
    min_amount_out: int = 0,
    deadline: int = START_TIME + 3600,
    nonce: int = 1,
) -> SwapIntent:
    return SwapIntent(
        pool_id=pool_id,
        asset_in=asset_in,
        amount_in=amount_in,
        min_amount_out=min_amount_out,
        deadline=deadline,
        nonce=nonce,
    )
