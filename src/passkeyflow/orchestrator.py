"""Wallet session and transaction orchestrator.

One orchestrator serves one smart-wallet session. Flow for a form:

    session check -> validate -> build -> submit -> delayed resync

with any failure routed through the error classifier into the feedback
state. The session gates everything: without a connected account every
operation raises SessionInactiveError.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from solders.pubkey import Pubkey

from passkeyflow.assets import AssetRegistry
from passkeyflow.config import Settings
from passkeyflow.errors import ErrorCategory, LedgerError, SessionInactiveError, WalletError
from passkeyflow.models import (
    BalanceSnapshot,
    BuiltTransaction,
    IntentKind,
    PaymentIntent,
    SwapIntent,
    TransferIntent,
)
from passkeyflow.providers.base import LedgerProvider
from passkeyflow.routing.base import AggregatorProvider
from passkeyflow.services.balance_sync import (
    BalanceSynchronizer,
    RefreshOutcome,
    RefreshStatus,
    RefreshTrigger,
)
from passkeyflow.services.error_classifier import FAUCET_URL, FeedbackState, Notice
from passkeyflow.services.submission import SubmissionPipeline
from passkeyflow.services.transaction_builder import TransactionBuilder
from passkeyflow.services.validator import IntentValidator
from passkeyflow.session import Session, SessionState
from passkeyflow.signing.base import ConnectOptions, WalletConnector

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of a user operation.

    `reset_form` tells the host whether to clear the form; only a
    successful submission clears it.
    """

    operation: str
    success: bool
    signature: Optional[str] = None
    category: Optional[ErrorCategory] = None
    notice: Optional[Notice] = None
    reset_form: bool = False

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "success": self.success,
            "signature": self.signature,
            "category": self.category.value if self.category else None,
            "notice": self.notice.to_dict() if self.notice else None,
            "reset_form": self.reset_form,
        }


_SUCCESS_TITLES = {
    IntentKind.SEND: "Transfer sent",
    IntentKind.SWAP: "Swap submitted",
    IntentKind.PAY: "Payment sent",
}


class WalletOrchestrator:
    """Coordinates session, sync, validation, building and submission."""

    def __init__(
        self,
        settings: Settings,
        ledger: LedgerProvider,
        aggregator: AggregatorProvider,
        connector: WalletConnector,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.ledger = ledger
        self.aggregator = aggregator
        self.connector = connector
        self.assets = AssetRegistry.from_settings(settings)

        self.session = SessionState()
        self.feedback = FeedbackState()
        self.validator = IntentValidator(self.assets, settings.merchant_address)
        self.builder = TransactionBuilder(
            aggregator,
            max_slippage_bps=settings.max_slippage_bps,
            direct_routes_only=settings.direct_routes_only,
        )
        self.synchronizer = BalanceSynchronizer(
            ledger,
            self.assets,
            self.session,
            cooldown_ms=settings.refresh_cooldown_ms,
            interval_ms=settings.refresh_interval_ms,
            history_limit=settings.history_limit,
            clock=clock,
        )
        self.pipeline = SubmissionPipeline(
            connector,
            fee_asset=settings.fee_asset,
            resync=self._settle,
            resync_delay_ms=settings.resync_delay_ms,
        )
        self._initial_sync: Optional[asyncio.Task] = None
        self.session.subscribe(self._on_session_change)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        connector: Optional[WalletConnector] = None,
    ) -> "WalletOrchestrator":
        """Wire the configured capabilities.

        A real passkey connector must be injected outside dry-run mode.
        """
        from passkeyflow.providers.factory import create_ledger_provider
        from passkeyflow.routing.factory import create_aggregator
        from passkeyflow.signing.factory import create_connector

        ledger = create_ledger_provider(settings)
        aggregator = create_aggregator(settings, AssetRegistry.from_settings(settings))
        if connector is None:
            connector = create_connector(settings, ledger)
        return cls(settings, ledger, aggregator, connector)

    # ======================
    # Views
    # ======================

    @property
    def snapshot(self) -> BalanceSnapshot:
        return self.synchronizer.snapshot

    @property
    def history(self) -> list[str]:
        return self.synchronizer.history

    @property
    def notice(self) -> Optional[Notice]:
        return self.feedback.current

    def state(self) -> dict:
        """Everything a view needs to render the wallet screen."""
        current = self.session.current
        return {
            "session": {
                "status": current.status.value,
                "address": current.address or None,
                "short_address": current.short_address or None,
            },
            "balances": self.snapshot.to_dict(),
            "assets": {
                "native": self.assets.native.symbol,
                "token": self.assets.token.symbol,
            },
            "history": self.history,
            "auto_refresh": self.synchronizer.timer_state.value,
            "pending": self.pipeline.pending.pending_kinds(),
            "payments_enabled": self.settings.has_merchant,
            "airdrop_enabled": self.settings.supports_airdrop,
            "notice": self.notice.to_dict() if self.notice else None,
        }

    # ======================
    # Session lifecycle
    # ======================

    def _on_session_change(self, previous: Session, current: Session) -> None:
        if current.is_connected and not previous.is_connected:
            self.synchronizer.reset()
            self._initial_sync = asyncio.create_task(self._run_initial_sync())
            self.synchronizer.start_timer()
        elif previous.is_connected and not current.is_connected:
            self.synchronizer.reset()
            self.pipeline.cancel_resyncs()
            if self._initial_sync is not None and not self._initial_sync.done():
                self._initial_sync.cancel()
            self._initial_sync = None

    async def _run_initial_sync(self) -> None:
        try:
            outcome = await self.synchronizer.refresh(RefreshTrigger.INITIAL)
        except SessionInactiveError:
            return
        if outcome.status == RefreshStatus.FAILED:
            logger.warning(f"Initial sync failed: {outcome.error}")

    async def connect(self, options: Optional[ConnectOptions] = None) -> OperationResult:
        """Connect the smart wallet and run the initial sync."""
        self.feedback.clear()
        if self.session.is_connected:
            return OperationResult(operation="connect", success=True)

        options = options or ConnectOptions(fee_mode=self.settings.fee_mode)
        self.session.mark_connecting()
        try:
            account = await self.connector.connect(options)
        except Exception as e:
            self.session.mark_disconnected()
            notice = self.feedback.report_error(e, "connect")
            logger.warning(f"Connect failed: {e}")
            return OperationResult(
                operation="connect", success=False, category=notice.category, notice=notice
            )

        self.session.mark_connected(account)
        if self._initial_sync is not None:
            await self._initial_sync
        return OperationResult(operation="connect", success=True)

    async def disconnect(self) -> None:
        """End the session; pending timers and resyncs are cancelled."""
        self.feedback.clear()
        try:
            await self.connector.disconnect()
        except Exception as e:
            logger.warning(f"Connector disconnect failed: {e}")
        finally:
            self.session.mark_disconnected()

    async def close(self) -> None:
        if self.session.is_connected:
            await self.disconnect()
        await self.ledger.close()
        await self.aggregator.close()

    # ======================
    # Refresh
    # ======================

    async def refresh(self) -> RefreshOutcome:
        """User-initiated refresh, gated by the cooldown."""
        self.session.require_account("refresh")
        self.feedback.clear()
        outcome = await self.synchronizer.refresh(RefreshTrigger.USER)

        if outcome.status == RefreshStatus.THROTTLED:
            self.feedback.report_info(
                "Refresh throttled",
                f"Please wait {outcome.retry_after_seconds}s before refreshing again.",
            )
        elif outcome.status == RefreshStatus.FAILED:
            if outcome.category == ErrorCategory.RATE_LIMITED:
                self.feedback.report_info(
                    "Auto-refresh paused",
                    "The network is rate limiting requests. Balances shown are from "
                    "the last successful refresh.",
                )
            else:
                self.feedback.report_error(outcome.error, "refresh")
        elif outcome.applied:
            self.feedback.report_success("Balances refreshed")
        return outcome

    def enable_auto_refresh(self) -> bool:
        """Re-enable the periodic refresh after rate limiting paused it."""
        self.session.require_account("auto-refresh")
        return self.synchronizer.enable_timer()

    async def _settle(self) -> None:
        try:
            await self.synchronizer.refresh(RefreshTrigger.SETTLEMENT)
        except SessionInactiveError:
            logger.debug("Settlement resync skipped: session ended")

    # ======================
    # Operations
    # ======================

    async def send(self, intent: TransferIntent) -> OperationResult:
        async def build(account: Pubkey) -> BuiltTransaction:
            validated = self.validator.validate_transfer(intent, self.snapshot)
            return self.builder.build_transfer(account, validated)

        return await self._submit(IntentKind.SEND, build)

    async def swap(self, intent: SwapIntent) -> OperationResult:
        async def build(account: Pubkey) -> BuiltTransaction:
            validated = self.validator.validate_swap(intent, self.snapshot)
            return await self.builder.build_swap(account, validated)

        return await self._submit(IntentKind.SWAP, build)

    async def pay(self, intent: PaymentIntent) -> OperationResult:
        async def build(account: Pubkey) -> BuiltTransaction:
            validated = self.validator.validate_payment(intent, self.snapshot)
            return self.builder.build_payment(account, validated)

        return await self._submit(IntentKind.PAY, build)

    async def _submit(
        self,
        kind: IntentKind,
        build: Callable[[Pubkey], Awaitable[BuiltTransaction]],
    ) -> OperationResult:
        account = self.session.require_account(kind.value)
        self.feedback.clear()

        async with self.pipeline.in_flight(kind):
            try:
                built = await build(account)
            except Exception as e:
                if not isinstance(e, WalletError):
                    logger.exception(f"Unexpected {kind.value} build failure")
                notice = self.feedback.report_error(e, kind.value)
                return OperationResult(
                    operation=kind.value,
                    success=False,
                    category=notice.category,
                    notice=notice,
                )

            result = await self.pipeline.submit(built)

        if not result.success:
            notice = self.feedback.report_category(result.category, result.message)
            return OperationResult(
                operation=kind.value, success=False, category=result.category, notice=notice
            )

        notice = self.feedback.report_success(
            _SUCCESS_TITLES[kind], f"{built.description}\nSignature: {result.signature}"
        )
        return OperationResult(
            operation=kind.value,
            success=True,
            signature=result.signature,
            notice=notice,
            reset_form=True,
        )

    async def request_airdrop(self) -> OperationResult:
        """Request test funds, wait for confirmation, then resync."""
        account = self.session.require_account(IntentKind.AIRDROP.value)
        self.feedback.clear()
        operation = IntentKind.AIRDROP.value

        async with self.pipeline.in_flight(IntentKind.AIRDROP):
            try:
                if not self.settings.supports_airdrop:
                    raise LedgerError(f"Airdrops are not available on {self.settings.network}")

                lamports = self.settings.airdrop_lamports
                signature = await self.ledger.request_airdrop(account, lamports)
                logger.info(f"Airdrop requested: {signature}, waiting for confirmation")

                confirmed = await self.ledger.confirm_transaction(
                    signature, self.settings.confirm_timeout_seconds
                )
                if not confirmed:
                    raise LedgerError(f"Airdrop {signature} was not confirmed in time")
            except Exception as e:
                notice = self.feedback.report_error(e, operation)
                return OperationResult(
                    operation=operation, success=False, category=notice.category, notice=notice
                )

        self.pipeline.schedule_resync()
        amount = self.assets.native.from_base_units(lamports)
        notice = self.feedback.report_success(
            "Airdrop successful",
            f"{amount.normalize():f} {self.assets.native.symbol} added to your wallet. "
            f"Need more? {FAUCET_URL}",
        )
        return OperationResult(
            operation=operation, success=True, signature=signature, notice=notice
        )

    def dismiss_feedback(self) -> None:
        self.feedback.clear()
