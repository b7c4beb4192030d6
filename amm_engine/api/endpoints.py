"""API endpoints for the AMM engine.

Endpoints are plain (sync) functions: FastAPI runs them in its thread
pool, and the engine serializes work per pool with its own locks.
"""

from fastapi import APIRouter, Depends, Header

from amm_engine.api.schemas import (
    AddLiquidityRequest,
    AddLiquidityResponse,
    CreatePoolRequest,
    CreatePoolResponse,
    FeesResponse,
    LiquidityResponse,
    LockResponse,
    PoolResponse,
    QuoteRequest,
    QuoteResponse,
    RemoveLiquidityRequest,
    RemoveLiquidityResponse,
    RewardsResponse,
    SignedSwapRequest,
    SwapRecordResponse,
    SwapRequest,
    SwapResponse,
    WithdrawFeesRequest,
    WithdrawFeesResponse,
)
from amm_engine.engine import AmmEngine, get_default_engine
from amm_engine.errors import NotAuthorized

router = APIRouter()


def get_engine() -> AmmEngine:
    """Dependency provider for the engine instance.

    Override this in tests to inject a configured engine:
        app.dependency_overrides[get_engine] = lambda: engine

    Returns:
        The engine that serves all requests.
    """
    return get_default_engine()


def get_caller(x_caller: str | None = Header(default=None)) -> str:
    """Caller identity from the X-Caller header.

    Raises:
        NotAuthorized: If the header is missing or empty
    """
    if not x_caller:
        raise NotAuthorized("Missing X-Caller header")
    return x_caller


# =============================================================================
# Pools
# =============================================================================


@router.get("/pools")
def list_pools(engine: AmmEngine = Depends(get_engine)) -> list[PoolResponse]:
    return [PoolResponse.from_pool(pool) for pool in engine.list_pools()]


@router.post("/pools", status_code=201)
def create_pool(
    request: CreatePoolRequest,
    caller: str = Depends(get_caller),
    engine: AmmEngine = Depends(get_engine),
) -> CreatePoolResponse:
    pool_id = engine.create_pool(
        caller, request.asset_a, request.asset_b, request.amount_a, request.amount_b
    )
    return CreatePoolResponse(pool_id=pool_id)


@router.get("/pools/{pool_id}")
def get_pool(pool_id: int, engine: AmmEngine = Depends(get_engine)) -> PoolResponse:
    return PoolResponse.from_pool(engine.get_pool(pool_id))


# =============================================================================
# Liquidity
# =============================================================================


@router.post("/pools/{pool_id}/liquidity")
def add_liquidity(
    pool_id: int,
    request: AddLiquidityRequest,
    caller: str = Depends(get_caller),
    engine: AmmEngine = Depends(get_engine),
) -> AddLiquidityResponse:
    result = engine.add_liquidity(
        caller,
        pool_id,
        request.amount_a,
        request.amount_b,
        request.min_liquidity,
        lock_period=request.lock_period,
    )
    return AddLiquidityResponse.from_result(result)


@router.post("/pools/{pool_id}/liquidity/remove")
def remove_liquidity(
    pool_id: int,
    request: RemoveLiquidityRequest,
    caller: str = Depends(get_caller),
    engine: AmmEngine = Depends(get_engine),
) -> RemoveLiquidityResponse:
    result = engine.remove_liquidity(
        caller, pool_id, request.shares, request.min_amount_a, request.min_amount_b
    )
    return RemoveLiquidityResponse.from_result(result)


@router.get("/pools/{pool_id}/liquidity/{provider}")
def get_liquidity(
    pool_id: int, provider: str, engine: AmmEngine = Depends(get_engine)
) -> LiquidityResponse:
    balance = engine.get_liquidity(pool_id, provider)
    return LiquidityResponse(pool_id=pool_id, provider=provider, balance=balance)


@router.get("/pools/{pool_id}/locks/{provider}")
def get_lock(pool_id: int, provider: str, engine: AmmEngine = Depends(get_engine)) -> LockResponse:
    lock = engine.get_lock(pool_id, provider)
    return LockResponse.from_lock(pool_id, provider, lock, engine.clock.now())


# =============================================================================
# Rewards
# =============================================================================


@router.get("/pools/{pool_id}/rewards/{provider}")
def get_rewards(
    pool_id: int, provider: str, engine: AmmEngine = Depends(get_engine)
) -> RewardsResponse:
    amount = engine.get_rewards(pool_id, provider)
    return RewardsResponse(pool_id=pool_id, provider=provider, amount=amount)


@router.post("/pools/{pool_id}/rewards/claim")
def claim_rewards(
    pool_id: int,
    caller: str = Depends(get_caller),
    engine: AmmEngine = Depends(get_engine),
) -> RewardsResponse:
    amount = engine.claim_rewards(caller, pool_id)
    return RewardsResponse(pool_id=pool_id, provider=caller, amount=amount)


# =============================================================================
# Swaps
# =============================================================================


@router.post("/pools/{pool_id}/quote")
def quote(
    pool_id: int, request: QuoteRequest, engine: AmmEngine = Depends(get_engine)
) -> QuoteResponse:
    return QuoteResponse.from_quote(engine.quote(pool_id, request.asset_in, request.amount_in))


@router.post("/pools/{pool_id}/swap")
def swap(
    pool_id: int,
    request: SwapRequest,
    caller: str = Depends(get_caller),
    engine: AmmEngine = Depends(get_engine),
) -> SwapResponse:
    if request.deadline is None:
        result = engine.swap_legacy(
            caller, pool_id, request.asset_in, request.amount_in, request.min_amount_out
        )
    else:
        result = engine.execute_swap(
            caller,
            pool_id,
            request.asset_in,
            request.amount_in,
            request.min_amount_out,
            request.deadline,
        )
    return SwapResponse.from_result(result)


@router.post("/swaps/signed")
def signed_swap(
    request: SignedSwapRequest, engine: AmmEngine = Depends(get_engine)
) -> SwapResponse:
    result = engine.execute_signed_swap(
        request.to_intent(), request.signature_bytes(), request.public_key_bytes()
    )
    return SwapResponse.from_result(result)


@router.get("/swaps/{swap_id}")
def get_swap(swap_id: int, engine: AmmEngine = Depends(get_engine)) -> SwapRecordResponse:
    return SwapRecordResponse.from_record(engine.get_swap(swap_id))


# =============================================================================
# Fees
# =============================================================================


@router.get("/fees")
def get_fees(engine: AmmEngine = Depends(get_engine)) -> FeesResponse:
    return FeesResponse(platform_fees=engine.get_platform_fees())


@router.post("/fees/withdraw")
def withdraw_fees(
    request: WithdrawFeesRequest,
    caller: str = Depends(get_caller),
    engine: AmmEngine = Depends(get_engine),
) -> WithdrawFeesResponse:
    remaining = engine.withdraw_fees(caller, request.amount)
    return WithdrawFeesResponse(withdrawn=request.amount, remaining=remaining)
