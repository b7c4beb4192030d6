"""Swap quoting and execution."""

from amm_engine.swap.engine import SwapEngine, SwapPlan, SwapQuote

__all__ = ["SwapEngine", "SwapPlan", "SwapQuote"]
