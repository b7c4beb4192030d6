"""AMM engine: the public operation surface.

AmmEngine composes the pool registry, liquidity ledger, swap engine,
reward accrual, fee treasury and audit log, and is the only place that
knows about callers, ownership and collaborators.

Every mutating operation on a pool runs under that pool's lock and
follows the same shape: validate and plan everything, settle asset
transfers (all-or-nothing), then commit the plan. A raised AmmError
therefore always means nothing changed.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from typing import Any

import structlog

from amm_engine.audit import AuditLog, SwapRecord
from amm_engine.capabilities import (
    AssetTransfer,
    Clock,
    CodeAttestation,
    Secp256k1Verifier,
    SignatureVerifier,
    SystemClock,
    Transfer,
)
from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.constants import LEGACY_DEADLINE, TREASURY_ACCOUNT, pool_account
from amm_engine.errors import (
    AmmError,
    InvalidAmount,
    InvalidContractHash,
    InvalidSignature,
    NotAuthorized,
    Overflow,
)
from amm_engine.fees import FeeTreasury
from amm_engine.intents import NonceBook, SwapIntent, intent_digest, trader_from_public_key
from amm_engine.liquidity import LiquidityLedger, TimeLock
from amm_engine.math import U128_MAX, SafeIntError
from amm_engine.models.types import bytes_to_hex, hex_to_bytes
from amm_engine.pools import Pool, PoolRegistry, normalize_asset
from amm_engine.results import AddLiquidityResult, RemoveLiquidityResult, SwapResult
from amm_engine.rewards import RewardAccrual, RewardState
from amm_engine.state.snapshot import (
    EngineSnapshot,
    LockEntry,
    NonceEntry,
    PoolEntry,
    PositionEntry,
    RewardEntry,
    SwapEntry,
)
from amm_engine.swap import SwapEngine, SwapQuote

logger = structlog.get_logger()


def _check_amounts(**amounts: int) -> None:
    """Reject amounts that are not u128 integers."""
    for name, value in amounts.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidAmount(f"{name} must be an integer, got {type(value).__name__}")
        if value < 0 or value > U128_MAX:
            raise InvalidAmount(f"{name} out of range: {value}")


def _check_caller(caller: str) -> None:
    if not isinstance(caller, str) or not caller:
        raise NotAuthorized("Caller identity is required")


class AmmEngine:
    """Automated market maker over two-asset constant-product pools.

    Args:
        config: Economic parameters and owner. Uses DEFAULT_ENGINE_CONFIG
            if not provided.
        clock: Time and height source. Defaults to SystemClock.
        attestation: Resolves asset contracts to code hashes for the
            allow-listed swap. Without it that swap always fails.
        verifier: Signature backend for signed intents. Defaults to
            secp256k1.
        transfers: Asset settlement backend. When None the engine keeps
            accounts only and settlement is left to the host.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        clock: Clock | None = None,
        attestation: CodeAttestation | None = None,
        verifier: SignatureVerifier | None = None,
        transfers: AssetTransfer | None = None,
    ) -> None:
        self.config = config or DEFAULT_ENGINE_CONFIG
        self.clock = clock or SystemClock(self.config.block_time)
        self.attestation = attestation
        self.verifier = verifier or Secp256k1Verifier()
        self.transfers = transfers

        self.registry = PoolRegistry()
        self.ledger = LiquidityLedger(
            ratio_tolerance_bps=self.config.ratio_tolerance_bps,
            min_lock_period=self.config.min_lock_period,
        )
        self.swaps = SwapEngine(
            fee_bps=self.config.fee_bps,
            max_price_impact_bps=self.config.max_price_impact_bps,
        )
        self.rewards = RewardAccrual(self.config.reward_rate, self.config.reward_policy)
        self.treasury = FeeTreasury()
        self.audit = AuditLog()
        self.nonces = NonceBook()

        self._approved_hashes: set[bytes] = set()
        self._pool_locks: dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._admin_lock = threading.Lock()

    @property
    def owner(self) -> str:
        return self.config.owner

    # =========================================================================
    # Internals
    # =========================================================================

    def _pool_lock(self, pool_id: int) -> threading.RLock:
        with self._locks_guard:
            lock = self._pool_locks.get(pool_id)
            if lock is None:
                lock = threading.RLock()
                self._pool_locks[pool_id] = lock
            return lock

    @contextmanager
    def _locked_pool(self, pool_id: int) -> Iterator[Pool]:
        """Hold the pool's lock and yield the live record.

        Raises:
            PoolNotFound: If the pool does not exist
        """
        # Look up first so unknown ids never allocate a lock
        self.registry.get_pool(pool_id)
        with self._pool_lock(pool_id):
            yield self.registry.get_pool(pool_id)

    @contextmanager
    def _operation(self, name: str, **context: Any) -> Iterator[None]:
        """Log rejections and turn arithmetic faults into Overflow."""
        try:
            yield
        except SafeIntError as err:
            logger.warning(f"{name}_rejected", code=Overflow.code.value, reason=str(err), **context)
            raise Overflow(str(err)) from err
        except AmmError as err:
            logger.info(f"{name}_rejected", code=err.code.value, reason=err.message, **context)
            raise

    def _settle(self, transfers: list[Transfer]) -> None:
        if self.transfers is None:
            return
        self.transfers.settle([t for t in transfers if t.amount > 0])

    def _require_owner(self, caller: str) -> None:
        _check_caller(caller)
        if caller != self.config.owner:
            raise NotAuthorized(f"{caller} is not the owner")

    # =========================================================================
    # Pool registry
    # =========================================================================

    def create_pool(
        self,
        caller: str,
        asset_a: str,
        asset_b: str,
        amount_a: int,
        amount_b: int,
    ) -> int:
        """Create a pool seeded by the caller and return its id.

        The caller receives isqrt(amount_a * amount_b) liquidity shares.

        Raises:
            InvalidAmount: If either amount is zero
            SameAsset: If both assets are the same
            InvalidToken: If an asset identifier is empty
        """
        with self._operation("create_pool", caller=caller, asset_a=asset_a, asset_b=asset_b):
            _check_caller(caller)
            _check_amounts(amount_a=amount_a, amount_b=amount_b)
            asset_a, asset_b, liquidity = self.registry.prepare_pool(
                asset_a, asset_b, amount_a, amount_b
            )
            now = self.clock.now()
            pool_id = self.registry.allocate_pool_id()

            with self._pool_lock(pool_id):
                account = pool_account(pool_id)
                self._settle(
                    [
                        Transfer(asset_a, caller, account, amount_a),
                        Transfer(asset_b, caller, account, amount_b),
                    ]
                )
                self.registry.register(
                    Pool(
                        pool_id=pool_id,
                        asset_a=asset_a,
                        asset_b=asset_b,
                        reserve_a=amount_a,
                        reserve_b=amount_b,
                        liquidity_total=liquidity,
                        created_at=now,
                    )
                )
                self.ledger.credit(pool_id, caller, liquidity)
                self.rewards.apply(pool_id, caller, RewardState(last_claim=now, accrued=0))

        logger.info(
            "pool_created",
            pool_id=pool_id,
            creator=caller,
            asset_a=asset_a,
            asset_b=asset_b,
            amount_a=amount_a,
            amount_b=amount_b,
            liquidity=liquidity,
        )
        return pool_id

    def get_pool(self, pool_id: int) -> Pool:
        """Consistent copy of a pool.

        Raises:
            PoolNotFound: If the pool does not exist
        """
        with self._locked_pool(pool_id) as pool:
            return pool.copy()

    def list_pools(self) -> list[Pool]:
        return [self.get_pool(pool_id) for pool_id in self.registry.pool_ids()]

    # =========================================================================
    # Liquidity
    # =========================================================================

    def add_liquidity(
        self,
        caller: str,
        pool_id: int,
        amount_a: int,
        amount_b: int,
        min_liquidity: int = 0,
        *,
        lock_period: int | None = None,
    ) -> AddLiquidityResult:
        """Deposit both assets in the pool's current ratio.

        Raises:
            PoolNotFound: If the pool does not exist
            ZeroAmount: If either amount is zero
            RatioMismatch: If the deposit ratio is off by more than the tolerance
            InvalidAmount: If the deposit mints no shares
            SlippageTooHigh: If fewer than min_liquidity shares would be minted
            LockPeriodTooShort: If lock_period is below the configured minimum
        """
        with self._operation("add_liquidity", caller=caller, pool_id=pool_id):
            _check_caller(caller)
            _check_amounts(amount_a=amount_a, amount_b=amount_b, min_liquidity=min_liquidity)
            if lock_period is not None:
                _check_amounts(lock_period=lock_period)

            with self._locked_pool(pool_id) as pool:
                now = self.clock.now()
                plan = self.ledger.plan_deposit(
                    pool,
                    caller,
                    amount_a,
                    amount_b,
                    min_liquidity,
                    now=now,
                    height=self.clock.height(),
                    lock_period=lock_period,
                )
                balance = self.ledger.balance_of(pool_id, caller)
                _, reward_state = self.rewards.plan_reset(pool_id, caller, balance, now)

                account = pool_account(pool_id)
                self._settle(
                    [
                        Transfer(pool.asset_a, caller, account, amount_a),
                        Transfer(pool.asset_b, caller, account, amount_b),
                    ]
                )
                self.ledger.commit_deposit(pool, plan)
                self.rewards.apply(pool_id, caller, reward_state)

        return AddLiquidityResult(
            minted=plan.minted,
            amount_a=amount_a,
            amount_b=amount_b,
            locked_until=plan.lock.locked_until if plan.lock else None,
        )

    def add_liquidity_with_lock(
        self,
        caller: str,
        pool_id: int,
        amount_a: int,
        amount_b: int,
        min_liquidity: int,
        lock_period: int,
    ) -> AddLiquidityResult:
        """Deposit and lock the caller's position for `lock_period` seconds."""
        return self.add_liquidity(
            caller, pool_id, amount_a, amount_b, min_liquidity, lock_period=lock_period
        )

    def remove_liquidity(
        self,
        caller: str,
        pool_id: int,
        shares: int,
        min_amount_a: int = 0,
        min_amount_b: int = 0,
    ) -> RemoveLiquidityResult:
        """Burn shares for a proportional share of both reserves.

        Raises:
            PoolNotFound: If the pool does not exist
            TimeLockActive: If the caller's position is still locked
            ZeroAmount: If shares is zero
            InsufficientLpTokens: If the caller holds fewer shares
            InsufficientLiquidity: If shares exceed the pool total
            InvalidAmount: If either payout rounds to zero
            MinOutputNotMet: If a payout is below its minimum
        """
        with self._operation("remove_liquidity", caller=caller, pool_id=pool_id):
            _check_caller(caller)
            _check_amounts(shares=shares, min_amount_a=min_amount_a, min_amount_b=min_amount_b)

            with self._locked_pool(pool_id) as pool:
                now = self.clock.now()
                plan = self.ledger.plan_withdrawal(
                    pool, caller, shares, min_amount_a, min_amount_b, now=now
                )
                balance = self.ledger.balance_of(pool_id, caller)
                pending, reward_state = self.rewards.plan_reset(pool_id, caller, balance, now)

                account = pool_account(pool_id)
                self._settle(
                    [
                        Transfer(pool.asset_a, account, caller, plan.amount_a),
                        Transfer(pool.asset_b, account, caller, plan.amount_b),
                    ]
                )
                self.ledger.commit_withdrawal(pool, plan)
                self.rewards.apply(pool_id, caller, reward_state)

        return RemoveLiquidityResult(
            amount_a=plan.amount_a,
            amount_b=plan.amount_b,
            shares_burned=plan.shares,
            pending_rewards=pending,
        )

    def get_liquidity(self, pool_id: int, provider: str) -> int:
        with self._locked_pool(pool_id):
            return self.ledger.balance_of(pool_id, provider)

    def get_lock(self, pool_id: int, provider: str) -> TimeLock | None:
        with self._locked_pool(pool_id):
            return self.ledger.lock_of(pool_id, provider)

    # =========================================================================
    # Swaps
    # =========================================================================

    def quote(self, pool_id: int, asset_in: str, amount_in: int) -> SwapQuote:
        """Price a swap against the pool's current reserves. Read-only.

        Raises:
            PoolNotFound: If the pool does not exist
            ZeroAmount: If amount_in is zero
            InvalidToken: If asset_in is not traded in the pool
        """
        with self._operation("quote", pool_id=pool_id):
            _check_amounts(amount_in=amount_in)
            with self._locked_pool(pool_id) as pool:
                quote = self.swaps.quote(pool, asset_in, amount_in)
        logger.debug(
            "swap_quoted",
            pool_id=pool_id,
            asset_in=quote.asset_in,
            amount_in=amount_in,
            amount_out=quote.amount_out,
            price_impact_bps=quote.price_impact_bps,
        )
        return quote

    def execute_swap(
        self,
        caller: str,
        pool_id: int,
        asset_in: str,
        amount_in: int,
        min_amount_out: int,
        deadline: int,
    ) -> SwapResult:
        """Swap an exact input amount for as much output as the pool gives.

        Raises:
            PoolNotFound: If the pool does not exist
            ZeroAmount: If amount_in is zero
            InvalidToken: If asset_in is not traded in the pool
            SwapExpired: If the current time is past the deadline
            InsufficientLiquidity: If the swap would drain the output reserve
            InvalidAmount: If the output rounds to zero
            MinOutputNotMet: If the output is below min_amount_out
            PriceImpactTooHigh: If the price impact exceeds the ceiling
            KInvariantViolated: If the reserve product would decrease
        """
        return self._swap(caller, pool_id, asset_in, amount_in, min_amount_out, deadline)

    def swap_legacy(
        self,
        caller: str,
        pool_id: int,
        asset_in: str,
        amount_in: int,
        min_amount_out: int,
    ) -> SwapResult:
        """Swap without a deadline, for callers that predate deadlines."""
        return self.execute_swap(caller, pool_id, asset_in, amount_in, min_amount_out, LEGACY_DEADLINE)

    def execute_swap_approved(
        self,
        caller: str,
        pool_id: int,
        asset_in: str,
        amount_in: int,
        min_amount_out: int,
        deadline: int,
    ) -> SwapResult:
        """Swap only if asset_in's contract code hash is on the allow-list.

        Raises:
            InvalidContractHash: If the contract is unknown or not approved
            (plus everything execute_swap raises)
        """
        with self._operation("swap_approved", caller=caller, pool_id=pool_id, asset_in=asset_in):
            if self.attestation is None:
                raise InvalidContractHash("No code attestation service configured")
            code_hash = self.attestation.code_hash(normalize_asset(asset_in))
            if code_hash is None or not self.is_code_hash_approved(code_hash):
                raise InvalidContractHash(f"Contract {asset_in} is not on the allow-list")
        return self.execute_swap(caller, pool_id, asset_in, amount_in, min_amount_out, deadline)

    def execute_signed_swap(
        self,
        intent: SwapIntent,
        signature: bytes,
        public_key: bytes,
    ) -> SwapResult:
        """Execute a swap intent signed off-chain by the holder of public_key.

        The trader is the account derived from public_key; each
        (trader, nonce) pair executes at most once.

        Raises:
            InvalidSignature: If the signature does not cover the intent
            NonceAlreadyUsed: If the intent's nonce was already consumed
            (plus everything execute_swap raises)
        """
        trader = trader_from_public_key(public_key)
        with self._operation("signed_swap", trader=trader, pool_id=intent.pool_id):
            _check_amounts(nonce=intent.nonce)
            digest = intent_digest(intent)
            if not self.verifier.verify(digest, signature, public_key):
                raise InvalidSignature("Signature does not match the intent")

        with self.nonces.guard(trader):
            with self._operation("signed_swap", trader=trader, pool_id=intent.pool_id):
                self.nonces.check(trader, intent.nonce)
            return self._swap(
                trader,
                intent.pool_id,
                intent.asset_in,
                intent.amount_in,
                intent.min_amount_out,
                intent.deadline,
                on_commit=lambda: self.nonces.consume(trader, intent.nonce),
            )

    def _swap(
        self,
        trader: str,
        pool_id: int,
        asset_in: str,
        amount_in: int,
        min_amount_out: int,
        deadline: int,
        on_commit: Callable[[], None] | None = None,
    ) -> SwapResult:
        """Plan, settle and commit a swap under the pool lock.

        on_commit runs after the swap is recorded, still under the pool lock.
        """
        with self._operation("swap", trader=trader, pool_id=pool_id, asset_in=asset_in):
            _check_caller(trader)
            _check_amounts(amount_in=amount_in, min_amount_out=min_amount_out, deadline=deadline)

            with self._locked_pool(pool_id) as pool:
                now = self.clock.now()
                plan = self.swaps.plan_swap(
                    pool, asset_in, amount_in, min_amount_out, deadline, now=now
                )
                quote = plan.quote

                account = pool_account(pool_id)
                self._settle(
                    [
                        Transfer(quote.asset_in, trader, account, quote.amount_in),
                        Transfer(quote.asset_out, account, trader, quote.amount_out),
                    ]
                )
                self.swaps.commit_swap(pool, plan)
                self.treasury.accumulate(quote.fee)
                swap_id = self.audit.next_id()
                self.audit.record_swap(
                    SwapRecord(
                        swap_id=swap_id,
                        trader=trader,
                        pool_id=pool_id,
                        asset_in=quote.asset_in,
                        asset_out=quote.asset_out,
                        amount_in=quote.amount_in,
                        amount_out=quote.amount_out,
                        fee=quote.fee,
                        timestamp=now,
                    )
                )
                if on_commit is not None:
                    on_commit()

        logger.info(
            "swap_executed",
            swap_id=swap_id,
            trader=trader,
            pool_id=pool_id,
            asset_in=quote.asset_in,
            amount_in=quote.amount_in,
            amount_out=quote.amount_out,
            fee=quote.fee,
            price_impact_bps=quote.price_impact_bps,
        )
        return SwapResult(
            amount_out=quote.amount_out,
            fee_paid=quote.fee,
            price_impact_bps=quote.price_impact_bps,
            swap_id=swap_id,
        )

    # =========================================================================
    # Rewards
    # =========================================================================

    def claim_rewards(self, caller: str, pool_id: int) -> int:
        """Return the caller's accrued rewards and restart accrual.

        Raises:
            PoolNotFound: If the pool does not exist
            NotAuthorized: If the caller has no position to claim against
        """
        with self._operation("claim_rewards", caller=caller, pool_id=pool_id):
            _check_caller(caller)
            with self._locked_pool(pool_id):
                now = self.clock.now()
                balance = self.ledger.balance_of(pool_id, caller)
                total, state = self.rewards.plan_claim(pool_id, caller, balance, now)
                self.rewards.apply(pool_id, caller, state)

        logger.info("rewards_claimed", pool_id=pool_id, provider=caller, amount=total)
        return total

    def get_rewards(self, pool_id: int, provider: str) -> int:
        """Rewards the provider could claim right now."""
        with self._locked_pool(pool_id):
            balance = self.ledger.balance_of(pool_id, provider)
            return self.rewards.pending(pool_id, provider, balance, self.clock.now())

    # =========================================================================
    # Fees and owner operations
    # =========================================================================

    def get_platform_fees(self) -> int:
        return self.treasury.accumulated

    def withdraw_fees(self, caller: str, amount: int) -> int:
        """Pay collected fees to the owner. Returns the fees left.

        Raises:
            NotAuthorized: If the caller is not the owner
            InsufficientBalance: If amount exceeds the collected fees
        """
        with self._operation("withdraw_fees", caller=caller, amount=amount):
            self._require_owner(caller)
            _check_amounts(amount=amount)

            def settle() -> None:
                self._settle(
                    [Transfer(self.config.fee_asset, TREASURY_ACCOUNT, self.config.owner, amount)]
                )

            return self.treasury.withdraw(amount, settle=settle)

    def approve_code_hash(self, caller: str, code_hash: bytes) -> None:
        """Add a contract code hash to the swap allow-list (owner only)."""
        with self._operation("approve_code_hash", caller=caller):
            self._require_owner(caller)
            with self._admin_lock:
                self._approved_hashes.add(bytes(code_hash))
        logger.info("code_hash_approved", code_hash=code_hash.hex())

    def revoke_code_hash(self, caller: str, code_hash: bytes) -> None:
        """Remove a contract code hash from the swap allow-list (owner only)."""
        with self._operation("revoke_code_hash", caller=caller):
            self._require_owner(caller)
            with self._admin_lock:
                self._approved_hashes.discard(bytes(code_hash))
        logger.info("code_hash_revoked", code_hash=code_hash.hex())

    def is_code_hash_approved(self, code_hash: bytes) -> bool:
        with self._admin_lock:
            return bytes(code_hash) in self._approved_hashes

    # =========================================================================
    # Audit log
    # =========================================================================

    def get_swap(self, swap_id: int) -> SwapRecord:
        """Raises SwapNotFound for unknown ids."""
        return self.audit.get_swap(swap_id)

    def swap_count(self) -> int:
        return len(self.audit)

    # =========================================================================
    # Snapshots
    # =========================================================================

    @contextmanager
    def _all_pools_locked(self) -> Iterator[None]:
        with ExitStack() as stack:
            for pool_id in self.registry.pool_ids():
                stack.enter_context(self._pool_lock(pool_id))
            yield

    def snapshot(self) -> EngineSnapshot:
        """Capture the complete persisted state."""
        with self._all_pools_locked():
            pools = [self.registry.get_pool(pid) for pid in self.registry.pool_ids()]
            with self._admin_lock:
                approved = sorted(self._approved_hashes)
            return EngineSnapshot(
                last_pool_id=self.registry.last_pool_id,
                last_swap_id=self.audit.last_swap_id,
                platform_fees=self.treasury.accumulated,
                pools=[
                    PoolEntry(
                        pool_id=p.pool_id,
                        asset_a=p.asset_a,
                        asset_b=p.asset_b,
                        reserve_a=p.reserve_a,
                        reserve_b=p.reserve_b,
                        liquidity_total=p.liquidity_total,
                        created_at=p.created_at,
                    )
                    for p in pools
                ],
                positions=[
                    PositionEntry(pool_id=pid, provider=provider, balance=balance)
                    for (pid, provider), balance in sorted(self.ledger.positions().items())
                ],
                locks=[
                    LockEntry(
                        pool_id=pid,
                        provider=provider,
                        locked_until=lock.locked_until,
                        created_at=lock.created_at,
                        created_height=lock.created_height,
                    )
                    for (pid, provider), lock in sorted(self.ledger.locks().items())
                ],
                rewards=[
                    RewardEntry(
                        pool_id=pid,
                        provider=provider,
                        last_claim=state.last_claim,
                        accrued=state.accrued,
                    )
                    for (pid, provider), state in sorted(self.rewards.states().items())
                ],
                swaps=[
                    SwapEntry(
                        swap_id=r.swap_id,
                        trader=r.trader,
                        pool_id=r.pool_id,
                        asset_in=r.asset_in,
                        asset_out=r.asset_out,
                        amount_in=r.amount_in,
                        amount_out=r.amount_out,
                        fee=r.fee,
                        timestamp=r.timestamp,
                    )
                    for r in self.audit.records()
                ],
                used_nonces=[
                    NonceEntry(trader=trader, nonce=nonce) for trader, nonce in self.nonces.used()
                ],
                approved_code_hashes=[bytes_to_hex(h) for h in approved],
            )

    @classmethod
    def restore(
        cls,
        snapshot: EngineSnapshot,
        config: EngineConfig | None = None,
        **collaborators: Any,
    ) -> AmmEngine:
        """Build an engine from a snapshot. Collaborators are passed through to __init__."""
        engine = cls(config, **collaborators)
        engine.registry.restore(
            (
                Pool(
                    pool_id=p.pool_id,
                    asset_a=p.asset_a,
                    asset_b=p.asset_b,
                    reserve_a=p.reserve_a,
                    reserve_b=p.reserve_b,
                    liquidity_total=p.liquidity_total,
                    created_at=p.created_at,
                )
                for p in snapshot.pools
            ),
            snapshot.last_pool_id,
        )
        engine.ledger.restore(
            {(e.pool_id, e.provider): e.balance for e in snapshot.positions},
            {
                (e.pool_id, e.provider): TimeLock(
                    locked_until=e.locked_until,
                    created_at=e.created_at,
                    created_height=e.created_height,
                )
                for e in snapshot.locks
            },
        )
        engine.rewards.restore(
            {
                (e.pool_id, e.provider): RewardState(last_claim=e.last_claim, accrued=e.accrued)
                for e in snapshot.rewards
            }
        )
        engine.audit.restore(
            (
                SwapRecord(
                    swap_id=e.swap_id,
                    trader=e.trader,
                    pool_id=e.pool_id,
                    asset_in=e.asset_in,
                    asset_out=e.asset_out,
                    amount_in=e.amount_in,
                    amount_out=e.amount_out,
                    fee=e.fee,
                    timestamp=e.timestamp,
                )
                for e in snapshot.swaps
            ),
            snapshot.last_swap_id,
        )
        engine.treasury.restore(snapshot.platform_fees)
        engine.nonces.restore((e.trader, e.nonce) for e in snapshot.used_nonces)
        engine._approved_hashes = {hex_to_bytes(h) for h in snapshot.approved_code_hashes}
        logger.info(
            "engine_restored",
            pools=len(snapshot.pools),
            swaps=len(snapshot.swaps),
            platform_fees=snapshot.platform_fees,
        )
        return engine


_default_engine: AmmEngine | None = None
_default_engine_lock = threading.Lock()


def get_default_engine() -> AmmEngine:
    """Process-wide engine configured from AMM_* environment variables.

    Created on first use.
    """
    global _default_engine
    with _default_engine_lock:
        if _default_engine is None:
            _default_engine = AmmEngine(EngineConfig.from_env())
        return _default_engine


__all__ = ["AmmEngine", "get_default_engine"]
