"""Protocol fee collection.

Usage:
    from amm_engine.fees import FeeTreasury

    treasury = FeeTreasury()
    treasury.accumulate(quote.fee)
"""

from amm_engine.fees.treasury import FeeTreasury

__all__ = ["FeeTreasury"]
