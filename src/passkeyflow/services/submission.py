"""Submission pipeline.

Hands a built transaction to the wallet connector exactly once, and on
success schedules a delayed re-synchronization so the ledger can settle
before balances are read again. There is no internal retry; a failure is
classified and returned to the caller with nothing else changed.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from passkeyflow.errors import ErrorCategory, WalletError
from passkeyflow.models import BuiltTransaction, IntentKind
from passkeyflow.services.error_classifier import classify
from passkeyflow.signing.base import SignOptions, WalletConnector
from passkeyflow.utils.locks import PendingRegistry

logger = logging.getLogger(__name__)

ResyncCallback = Callable[[], Awaitable[Any]]


@dataclass
class SubmissionResult:
    """Signature on success, error category otherwise."""

    signature: Optional[str] = None
    category: Optional[ErrorCategory] = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.signature is not None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "signature": self.signature,
            "category": self.category.value if self.category else None,
            "message": self.message,
        }


class SubmissionPipeline:
    """Single-flight submission through the wallet connector.

    Args:
        connector: Signing capability
        fee_asset: Asset the paymaster charges fees in
        resync: Coroutine function run after a successful submission
        resync_delay_ms: Delay before the resync runs
    """

    def __init__(
        self,
        connector: WalletConnector,
        fee_asset: str,
        resync: Optional[ResyncCallback] = None,
        resync_delay_ms: int = 3_000,
    ):
        self.connector = connector
        self.fee_asset = fee_asset
        self.resync = resync
        self.resync_delay_ms = resync_delay_ms
        self.pending = PendingRegistry()
        self._resync_tasks: set[asyncio.Task] = set()

    @asynccontextmanager
    async def in_flight(self, kind: IntentKind) -> AsyncIterator[None]:
        """Hold the pending flag for one form while it validates, builds and submits.

        Raises:
            SubmissionInProgressError: If that form is already pending
        """
        async with self.pending.hold(kind.value):
            yield

    def is_pending(self, kind: IntentKind) -> bool:
        return self.pending.is_pending(kind.value)

    async def submit(self, built: BuiltTransaction) -> SubmissionResult:
        """Sign and send a built transaction."""
        options = SignOptions(fee_asset=self.fee_asset)
        try:
            signature = await self.connector.sign_and_send(built, options)
        except Exception as e:
            category = classify(e)
            message = e.message if isinstance(e, WalletError) else str(e)
            logger.warning(f"Submission failed [{category.value}]: {message}")
            return SubmissionResult(category=category, message=message)

        logger.info(f"Submitted via {self.connector.name}: {signature}")
        self.schedule_resync()
        return SubmissionResult(signature=signature)

    # ======================
    # Delayed re-synchronization
    # ======================

    @property
    def pending_resyncs(self) -> int:
        return sum(1 for task in self._resync_tasks if not task.done())

    def schedule_resync(self, delay_ms: Optional[int] = None) -> Optional[asyncio.Task]:
        """Run the resync callback after a delay."""
        if self.resync is None:
            return None

        delay = self.resync_delay_ms if delay_ms is None else delay_ms
        task = asyncio.create_task(self._delayed_resync(delay))
        self._resync_tasks.add(task)
        task.add_done_callback(self._resync_tasks.discard)
        logger.debug(f"Resync scheduled in {delay}ms")
        return task

    async def _delayed_resync(self, delay_ms: int) -> None:
        await asyncio.sleep(delay_ms / 1000)
        try:
            await self.resync()
        except Exception as e:
            logger.warning(f"Post-submission resync failed: {e}")

    def cancel_resyncs(self) -> None:
        """Cancel resyncs that have not run yet."""
        for task in list(self._resync_tasks):
            task.cancel()
        self._resync_tasks.clear()
