"""Single-flight guards for form submissions.

Each submission form (send, swap, pay, airdrop) gets its own lock. A form
whose previous submission is still pending is refused immediately; nothing
is queued behind it.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from passkeyflow.errors import SubmissionInProgressError

logger = logging.getLogger(__name__)


class PendingRegistry:
    """Registry of per-form pending flags backed by asyncio locks.

    Example:
        pending = PendingRegistry()
        async with pending.hold("send"):
            # build and submit the transfer
            ...
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _get_lock(self, kind: str) -> asyncio.Lock:
        if kind not in self._locks:
            self._locks[kind] = asyncio.Lock()
        return self._locks[kind]

    def is_pending(self, kind: str) -> bool:
        """Check whether a submission of this kind is in flight."""
        lock = self._locks.get(kind)
        return bool(lock and lock.locked())

    def pending_kinds(self) -> list[str]:
        return sorted(kind for kind, lock in self._locks.items() if lock.locked())

    @asynccontextmanager
    async def hold(self, kind: str) -> AsyncIterator[None]:
        """Hold the pending flag for a form for the duration of the block.

        Raises:
            SubmissionInProgressError: If the form already has a pending submission
        """
        lock = self._get_lock(kind)
        if lock.locked():
            logger.warning(f"Rejected {kind} submission: previous one still pending")
            raise SubmissionInProgressError(kind)

        await lock.acquire()
        logger.debug(f"Pending flag set: {kind}")
        try:
            yield
        finally:
            lock.release()
            logger.debug(f"Pending flag cleared: {kind}")
