"""Balance and history synchronization for the connected account.

Reads the native balance, the token balance and the recent signatures from
the ledger and applies them to one in-memory snapshot.

Ordering rules:
- User refreshes are gated by a cooldown; a refresh inside the cooldown is
  rejected with a retry hint, never queued.
- Every refresh gets an issue number. Results are applied only if no
  later-issued refresh has already applied, so a slow early refresh cannot
  overwrite a fast later one.
- Disconnect bumps the session epoch; results from an older epoch are
  dropped.

Rate limiting during refresh disables the periodic timer (a one-way
breaker) until the user re-enables it or reconnects.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from solders.pubkey import Pubkey

from passkeyflow.assets import AssetRegistry
from passkeyflow.errors import ErrorCategory, SessionInactiveError
from passkeyflow.models import BalanceSnapshot
from passkeyflow.providers.base import LedgerProvider
from passkeyflow.services.error_classifier import classify
from passkeyflow.session import SessionState, shorten_address

logger = logging.getLogger(__name__)


class RefreshTrigger(str, Enum):
    """What asked for a refresh."""

    USER = "user"
    TIMER = "timer"
    INITIAL = "initial"
    SETTLEMENT = "settlement"  # re-read after a submission or airdrop


class TimerState(str, Enum):
    """Periodic refresh breaker states."""

    ENABLED = "enabled"
    DISABLED_BY_RATE_LIMIT = "disabled_by_rate_limit"
    STOPPED = "stopped"


class RefreshStatus(str, Enum):
    APPLIED = "applied"
    THROTTLED = "throttled"
    FAILED = "failed"
    STALE = "stale"
    SKIPPED = "skipped"


@dataclass
class RefreshGate:
    """Cooldown gate shared by user and timer refreshes.

    Times are seconds on the synchronizer's monotonic clock.
    """

    cooldown_ms: int
    last_refresh_at: Optional[float] = None

    def remaining_ms(self, now: float) -> int:
        if self.last_refresh_at is None:
            return 0
        elapsed_ms = (now - self.last_refresh_at) * 1000
        return max(0, int(self.cooldown_ms - elapsed_ms))

    def is_open(self, now: float) -> bool:
        return self.remaining_ms(now) == 0

    def mark(self, now: float) -> None:
        self.last_refresh_at = now

    def reset(self) -> None:
        self.last_refresh_at = None


@dataclass
class RefreshOutcome:
    """Result of one refresh call."""

    status: RefreshStatus
    trigger: RefreshTrigger
    category: Optional[ErrorCategory] = None
    error: Optional[BaseException] = field(default=None, repr=False)
    retry_after_ms: int = 0

    @property
    def applied(self) -> bool:
        return self.status == RefreshStatus.APPLIED

    @property
    def retry_after_seconds(self) -> int:
        return -(-self.retry_after_ms // 1000)


class BalanceSynchronizer:
    """Keeps the balance snapshot and signature history in sync.

    Args:
        ledger: Ledger query capability
        assets: Native asset and configured token
        session: Session state; every refresh requires a connected account
        cooldown_ms: Minimum interval between refreshes
        interval_ms: Periodic timer interval
        history_limit: Recent signatures to keep
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        ledger: LedgerProvider,
        assets: AssetRegistry,
        session: SessionState,
        cooldown_ms: int = 10_000,
        interval_ms: int = 60_000,
        history_limit: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ledger = ledger
        self.assets = assets
        self.session = session
        self.interval_ms = interval_ms
        self.history_limit = history_limit
        self.clock = clock
        self.gate = RefreshGate(cooldown_ms=cooldown_ms)

        self._snapshot = BalanceSnapshot()
        self._history: list[str] = []
        self._issued = 0
        self._balances_seq = 0
        self._history_seq = 0
        self._epoch = 0
        self._timer_state = TimerState.STOPPED
        self._timer_task: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> BalanceSnapshot:
        return self._snapshot

    @property
    def history(self) -> list[str]:
        return list(self._history)

    @property
    def timer_state(self) -> TimerState:
        return self._timer_state

    @property
    def timer_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.USER) -> RefreshOutcome:
        """Refresh balances and history.

        Raises:
            SessionInactiveError: If no wallet is connected
        """
        account = self.session.require_account("refresh")
        now = self.clock()

        if trigger in (RefreshTrigger.USER, RefreshTrigger.TIMER) and not self.gate.is_open(now):
            remaining = self.gate.remaining_ms(now)
            if trigger == RefreshTrigger.TIMER:
                logger.debug(f"Timer refresh skipped, cooldown has {remaining}ms left")
                return RefreshOutcome(RefreshStatus.SKIPPED, trigger, retry_after_ms=remaining)
            logger.info(f"Refresh throttled, retry in {remaining}ms")
            return RefreshOutcome(
                RefreshStatus.THROTTLED,
                trigger,
                category=ErrorCategory.RATE_LIMITED,
                retry_after_ms=remaining,
            )

        self.gate.mark(now)
        self._issued += 1
        seq = self._issued
        epoch = self._epoch

        logger.debug(f"Refresh #{seq} ({trigger.value}) for {shorten_address(str(account))}")
        native, token, history = await asyncio.gather(
            self.ledger.get_native_balance(account),
            self._get_token_balance(account),
            self.ledger.get_recent_signatures(account, self.history_limit),
            return_exceptions=True,
        )
        for result in (native, token, history):
            if isinstance(result, asyncio.CancelledError):
                raise result

        if epoch != self._epoch:
            logger.info(f"Refresh #{seq} discarded: session ended while in flight")
            return RefreshOutcome(RefreshStatus.STALE, trigger)

        error = next(
            (r for r in (native, token, history) if isinstance(r, BaseException)), None
        )
        applied_any = False
        superseded = False

        if not isinstance(native, BaseException) and not isinstance(token, BaseException):
            if seq > self._balances_seq:
                self._balances_seq = seq
                self._snapshot = BalanceSnapshot(
                    native=self.assets.native.from_base_units(native),
                    token=self.assets.token.from_base_units(token),
                    as_of=datetime.now(timezone.utc),
                )
                applied_any = True
            else:
                superseded = True

        if not isinstance(history, BaseException):
            if seq > self._history_seq:
                self._history_seq = seq
                self._history = list(history)[: self.history_limit]
                applied_any = True
            else:
                superseded = True

        if error is not None:
            return self._on_failure(trigger, error)

        if superseded and not applied_any:
            logger.info(f"Refresh #{seq} discarded: superseded by a later refresh")
            return RefreshOutcome(RefreshStatus.STALE, trigger)

        logger.info(
            f"Refresh #{seq} applied: {self._snapshot.native} {self.assets.native.symbol}, "
            f"{self._snapshot.token} {self.assets.token.symbol}, "
            f"{len(self._history)} recent transactions"
        )
        return RefreshOutcome(RefreshStatus.APPLIED, trigger)

    async def _get_token_balance(self, account: Pubkey) -> int:
        mint = Pubkey.from_string(self.assets.token.mint)
        balance = await self.ledger.get_token_balance(account, mint)
        # No token account yet means a zero balance
        return 0 if balance is None else balance

    def _on_failure(self, trigger: RefreshTrigger, error: BaseException) -> RefreshOutcome:
        category = classify(error)
        logger.warning(f"Refresh ({trigger.value}) failed [{category.value}]: {error}")

        if category == ErrorCategory.RATE_LIMITED:
            self.disable_timer()

        return RefreshOutcome(RefreshStatus.FAILED, trigger, category=category, error=error)

    # ======================
    # Periodic timer
    # ======================

    def start_timer(self) -> bool:
        """Start the periodic refresh unless the breaker has tripped.

        Returns:
            True if the timer is running afterwards
        """
        if self._timer_state == TimerState.DISABLED_BY_RATE_LIMIT:
            logger.info("Periodic refresh not started: disabled by rate limit")
            return False
        if self.timer_running:
            return True

        self._timer_state = TimerState.ENABLED
        self._timer_task = asyncio.create_task(self._run_timer())
        logger.info(f"Periodic refresh started (every {self.interval_ms}ms)")
        return True

    def enable_timer(self) -> bool:
        """Re-enable the periodic refresh after the breaker tripped."""
        if self._timer_state == TimerState.DISABLED_BY_RATE_LIMIT:
            logger.info("Periodic refresh re-enabled")
            self._timer_state = TimerState.STOPPED
        if not self.session.is_connected:
            return False
        return self.start_timer()

    def disable_timer(self) -> None:
        """Trip the breaker: stop the timer until re-enabled or reconnect."""
        if self._timer_state != TimerState.DISABLED_BY_RATE_LIMIT:
            logger.warning("Periodic refresh disabled after rate limiting")
        self._timer_state = TimerState.DISABLED_BY_RATE_LIMIT
        self._cancel_timer()

    def stop_timer(self) -> None:
        if self._timer_state == TimerState.ENABLED:
            self._timer_state = TimerState.STOPPED
        self._cancel_timer()

    def _cancel_timer(self) -> None:
        task = self._timer_task
        self._timer_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run_timer(self) -> None:
        interval = self.interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            if not self.session.is_connected:
                break
            try:
                await self.refresh(RefreshTrigger.TIMER)
            except SessionInactiveError:
                break
            except Exception as e:
                logger.error(f"Periodic refresh error: {e}")

            if self._timer_state != TimerState.ENABLED:
                break

    # ======================
    # Session lifecycle
    # ======================

    def reset(self, clear_breaker: bool = True) -> None:
        """Forget everything for the current session.

        In-flight refreshes become stale and their results are dropped.
        """
        self._epoch += 1
        self.stop_timer()
        if clear_breaker:
            self._timer_state = TimerState.STOPPED
        self._snapshot = BalanceSnapshot()
        self._history = []
        self._balances_seq = self._issued
        self._history_seq = self._issued
        self.gate.reset()
