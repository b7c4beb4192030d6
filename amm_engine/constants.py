"""Protocol constants for the AMM engine.

Centralizes the economic parameters; EngineConfig takes its defaults
from here.
"""

# Swap fee deducted from the input amount (30 bps = 0.3%)
FEE_BPS = 30

# Allowed deviation of a deposit ratio from the pool ratio (50 bps = 0.5%)
RATIO_TOLERANCE_BPS = 50

# Maximum price impact a swap may cause (1000 bps = 10%)
MAX_PRICE_IMPACT_BPS = 1000

# Shortest accepted liquidity lock, in seconds (1 day)
MIN_LOCK_PERIOD = 86_400

# Reward units accrued per liquidity share per second
REWARD_RATE = 1

# Deadline used by the legacy swap entry point (u64 max)
LEGACY_DEADLINE = 2**64 - 1

# Asset in which collected platform fees are settled
FEE_ASSET = "FEE"

# Seconds per block, used to derive block height from wall-clock time
BLOCK_TIME = 6

# Account holding collected platform fees
TREASURY_ACCOUNT = "treasury"


def pool_account(pool_id: int) -> str:
    """Account that holds a pool's reserves in the asset ledger."""
    return f"pool:{pool_id}"
