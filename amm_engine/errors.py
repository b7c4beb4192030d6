"""Typed failures raised by engine operations.

Every rejection carries a stable ErrorCode so callers (and the HTTP
layer) can react to the precise reason without parsing messages.
Operations validate every precondition before the first write, so a
raised AmmError always means no state changed.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Wire-stable identifiers for engine failures."""

    # Validation
    INVALID_AMOUNT = "invalid_amount"
    ZERO_AMOUNT = "zero_amount"
    SAME_ASSET = "same_asset"
    INVALID_TOKEN = "invalid_token"
    LOCK_PERIOD_TOO_SHORT = "lock_period_too_short"
    # Not found
    POOL_NOT_FOUND = "pool_not_found"
    SWAP_NOT_FOUND = "swap_not_found"
    # Economic guards
    RATIO_MISMATCH = "ratio_mismatch"
    SLIPPAGE_TOO_HIGH = "slippage_too_high"
    MIN_OUTPUT_NOT_MET = "min_output_not_met"
    PRICE_IMPACT_TOO_HIGH = "price_impact_too_high"
    K_INVARIANT_VIOLATED = "k_invariant_violated"
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    INSUFFICIENT_LP_TOKENS = "insufficient_lp_tokens"
    # Authorization
    NOT_AUTHORIZED = "not_authorized"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_CONTRACT_HASH = "invalid_contract_hash"
    INVALID_SIGNATURE = "invalid_signature"
    NONCE_ALREADY_USED = "nonce_already_used"
    # Temporal
    SWAP_EXPIRED = "swap_expired"
    TIME_LOCK_ACTIVE = "time_lock_active"
    # Settlement / arithmetic
    TRANSFER_FAILED = "transfer_failed"
    OVERFLOW = "overflow"


class AmmError(Exception):
    """Base error for engine operations."""

    code: ErrorCode = ErrorCode.INVALID_AMOUNT

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.code.value.replace("_", " ")
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# --- Categories ---


class ValidationError(AmmError):
    """Malformed or out-of-range input."""


class NotFoundError(AmmError):
    """Referenced record does not exist."""


class EconomicGuardError(AmmError):
    """Operation would break a pool's economic invariants."""


class AuthorizationError(AmmError):
    """Caller is not allowed to perform the operation."""


class TemporalError(AmmError):
    """Operation is not allowed at the current time."""


class SettlementError(AmmError):
    """Asset movement could not be settled."""


class ArithmeticFault(AmmError):
    """A computed balance left the representable range."""


# --- Validation ---


class InvalidAmount(ValidationError):
    code = ErrorCode.INVALID_AMOUNT


class ZeroAmount(ValidationError):
    code = ErrorCode.ZERO_AMOUNT


class SameAsset(ValidationError):
    code = ErrorCode.SAME_ASSET


class InvalidToken(ValidationError):
    code = ErrorCode.INVALID_TOKEN


class LockPeriodTooShort(ValidationError):
    code = ErrorCode.LOCK_PERIOD_TOO_SHORT


# --- Not found ---


class PoolNotFound(NotFoundError):
    code = ErrorCode.POOL_NOT_FOUND


class SwapNotFound(NotFoundError):
    code = ErrorCode.SWAP_NOT_FOUND


# --- Economic guards ---


class RatioMismatch(EconomicGuardError):
    code = ErrorCode.RATIO_MISMATCH


class SlippageTooHigh(EconomicGuardError):
    code = ErrorCode.SLIPPAGE_TOO_HIGH


class MinOutputNotMet(EconomicGuardError):
    code = ErrorCode.MIN_OUTPUT_NOT_MET


class PriceImpactTooHigh(EconomicGuardError):
    code = ErrorCode.PRICE_IMPACT_TOO_HIGH


class KInvariantViolated(EconomicGuardError):
    code = ErrorCode.K_INVARIANT_VIOLATED


class InsufficientLiquidity(EconomicGuardError):
    code = ErrorCode.INSUFFICIENT_LIQUIDITY


class InsufficientLpTokens(EconomicGuardError):
    code = ErrorCode.INSUFFICIENT_LP_TOKENS


# --- Authorization ---


class NotAuthorized(AuthorizationError):
    code = ErrorCode.NOT_AUTHORIZED


class InsufficientBalance(AuthorizationError):
    code = ErrorCode.INSUFFICIENT_BALANCE


class InvalidContractHash(AuthorizationError):
    code = ErrorCode.INVALID_CONTRACT_HASH


class InvalidSignature(AuthorizationError):
    code = ErrorCode.INVALID_SIGNATURE


class NonceAlreadyUsed(AuthorizationError):
    code = ErrorCode.NONCE_ALREADY_USED


# --- Temporal ---


class SwapExpired(TemporalError):
    code = ErrorCode.SWAP_EXPIRED


class TimeLockActive(TemporalError):
    code = ErrorCode.TIME_LOCK_ACTIVE


# --- Settlement / arithmetic ---


class TransferFailed(SettlementError):
    code = ErrorCode.TRANSFER_FAILED


class Overflow(ArithmeticFault):
    code = ErrorCode.OVERFLOW
