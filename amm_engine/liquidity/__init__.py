"""Liquidity shares and time-locks."""

from amm_engine.liquidity.ledger import DepositPlan, LiquidityLedger, TimeLock, WithdrawalPlan

__all__ = ["LiquidityLedger", "TimeLock", "DepositPlan", "WithdrawalPlan"]
