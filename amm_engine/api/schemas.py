"""Request and response bodies for the HTTP API.

Amounts use the `Amount` type: accepted as ints or decimal strings,
always emitted as decimal strings.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from amm_engine.audit import SwapRecord
from amm_engine.intents import SwapIntent
from amm_engine.liquidity import TimeLock
from amm_engine.models.types import Amount, AssetId, HexBytes, Timestamp, hex_to_bytes
from amm_engine.pools import Pool
from amm_engine.results import AddLiquidityResult, RemoveLiquidityResult, SwapResult
from amm_engine.swap import SwapQuote


class ErrorResponse(BaseModel):
    error: str = Field(description="Stable error code, e.g. 'ratio_mismatch'")
    detail: str


# =============================================================================
# Pools
# =============================================================================


class CreatePoolRequest(BaseModel):
    asset_a: AssetId
    asset_b: AssetId
    amount_a: Amount
    amount_b: Amount


class CreatePoolResponse(BaseModel):
    pool_id: int


class PoolResponse(BaseModel):
    pool_id: int
    asset_a: str
    asset_b: str
    reserve_a: Amount
    reserve_b: Amount
    liquidity_total: Amount
    created_at: int

    @classmethod
    def from_pool(cls, pool: Pool) -> PoolResponse:
        return cls(
            pool_id=pool.pool_id,
            asset_a=pool.asset_a,
            asset_b=pool.asset_b,
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
            liquidity_total=pool.liquidity_total,
            created_at=pool.created_at,
        )


# =============================================================================
# Liquidity
# =============================================================================


class AddLiquidityRequest(BaseModel):
    amount_a: Amount
    amount_b: Amount
    min_liquidity: Amount = 0
    lock_period: Timestamp | None = Field(
        default=None, description="Lock the position for this many seconds"
    )


class AddLiquidityResponse(BaseModel):
    minted: Amount
    amount_a: Amount
    amount_b: Amount
    locked_until: Amount | None = None

    @classmethod
    def from_result(cls, result: AddLiquidityResult) -> AddLiquidityResponse:
        return cls(
            minted=result.minted,
            amount_a=result.amount_a,
            amount_b=result.amount_b,
            locked_until=result.locked_until,
        )


class RemoveLiquidityRequest(BaseModel):
    shares: Amount
    min_amount_a: Amount = 0
    min_amount_b: Amount = 0


class RemoveLiquidityResponse(BaseModel):
    amount_a: Amount
    amount_b: Amount
    shares_burned: Amount
    pending_rewards: Amount

    @classmethod
    def from_result(cls, result: RemoveLiquidityResult) -> RemoveLiquidityResponse:
        return cls(
            amount_a=result.amount_a,
            amount_b=result.amount_b,
            shares_burned=result.shares_burned,
            pending_rewards=result.pending_rewards,
        )


class LiquidityResponse(BaseModel):
    pool_id: int
    provider: str
    balance: Amount


class LockResponse(BaseModel):
    pool_id: int
    provider: str
    locked_until: Amount | None = None
    active: bool = False

    @classmethod
    def from_lock(cls, pool_id: int, provider: str, lock: TimeLock | None, now: int) -> LockResponse:
        if lock is None:
            return cls(pool_id=pool_id, provider=provider)
        return cls(
            pool_id=pool_id,
            provider=provider,
            locked_until=lock.locked_until,
            active=lock.is_active(now),
        )


class RewardsResponse(BaseModel):
    pool_id: int
    provider: str
    amount: Amount


# =============================================================================
# Swaps
# =============================================================================


class QuoteRequest(BaseModel):
    asset_in: AssetId
    amount_in: Amount


class QuoteResponse(BaseModel):
    pool_id: int
    asset_in: str
    asset_out: str
    amount_in: Amount
    amount_out: Amount
    fee: Amount
    price_impact_bps: int

    @classmethod
    def from_quote(cls, quote: SwapQuote) -> QuoteResponse:
        return cls(
            pool_id=quote.pool_id,
            asset_in=quote.asset_in,
            asset_out=quote.asset_out,
            amount_in=quote.amount_in,
            amount_out=quote.amount_out,
            fee=quote.fee,
            price_impact_bps=quote.price_impact_bps,
        )


class SwapRequest(BaseModel):
    asset_in: AssetId
    amount_in: Amount
    min_amount_out: Amount = 0
    deadline: Timestamp | None = Field(
        default=None, description="Latest acceptable execution time; omitted means no deadline"
    )


class SwapResponse(BaseModel):
    swap_id: int
    amount_out: Amount
    fee_paid: Amount
    price_impact_bps: int

    @classmethod
    def from_result(cls, result: SwapResult) -> SwapResponse:
        return cls(
            swap_id=result.swap_id,
            amount_out=result.amount_out,
            fee_paid=result.fee_paid,
            price_impact_bps=result.price_impact_bps,
        )


class SignedSwapRequest(BaseModel):
    pool_id: int = Field(ge=1)
    asset_in: AssetId
    amount_in: Amount
    min_amount_out: Amount = 0
    deadline: Timestamp
    nonce: Timestamp
    signature: HexBytes
    public_key: HexBytes

    def to_intent(self) -> SwapIntent:
        return SwapIntent(
            pool_id=self.pool_id,
            asset_in=self.asset_in,
            amount_in=self.amount_in,
            min_amount_out=self.min_amount_out,
            deadline=self.deadline,
            nonce=self.nonce,
        )

    def signature_bytes(self) -> bytes:
        return hex_to_bytes(self.signature)

    def public_key_bytes(self) -> bytes:
        return hex_to_bytes(self.public_key)


class SwapRecordResponse(BaseModel):
    swap_id: int
    trader: str
    pool_id: int
    asset_in: str
    asset_out: str
    amount_in: Amount
    amount_out: Amount
    fee: Amount
    timestamp: int

    @classmethod
    def from_record(cls, record: SwapRecord) -> SwapRecordResponse:
        return cls(
            swap_id=record.swap_id,
            trader=record.trader,
            pool_id=record.pool_id,
            asset_in=record.asset_in,
            asset_out=record.asset_out,
            amount_in=record.amount_in,
            amount_out=record.amount_out,
            fee=record.fee,
            timestamp=record.timestamp,
        )


# =============================================================================
# Fees
# =============================================================================


class FeesResponse(BaseModel):
    platform_fees: Amount


class WithdrawFeesRequest(BaseModel):
    amount: Amount


class WithdrawFeesResponse(BaseModel):
    withdrawn: Amount
    remaining: Amount
