"""Dry-run ledger for development and tests (no network access)."""

import logging
import secrets
from collections import Counter
from typing import Optional

from solders.pubkey import Pubkey
from solders.signature import Signature

from passkeyflow.providers.base import LedgerProvider

logger = logging.getLogger(__name__)


def fake_signature() -> str:
    """Generate a random, well-formed transaction signature."""
    return str(Signature(secrets.token_bytes(64)))


class DryRunLedger(LedgerProvider):
    """In-memory ledger with settable balances and injectable failures.

    Token balances are keyed by (account, mint); a missing key behaves like
    a token account that was never created.
    """

    def __init__(self) -> None:
        self.native_balances: dict[Pubkey, int] = {}
        self.token_balances: dict[tuple[Pubkey, Pubkey], int] = {}
        self.signatures: dict[Pubkey, list[str]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: Counter = Counter()
        self.confirm_result = True

    @property
    def name(self) -> str:
        return "dryrun"

    def set_native_balance(self, account: Pubkey, lamports: int) -> None:
        self.native_balances[account] = lamports

    def set_token_balance(self, account: Pubkey, mint: Pubkey, amount: Optional[int]) -> None:
        if amount is None:
            self.token_balances.pop((account, mint), None)
        else:
            self.token_balances[(account, mint)] = amount

    def record_signature(self, account: Pubkey, signature: str) -> None:
        self.signatures.setdefault(account, []).insert(0, signature)

    def fail(self, method: str, error: Exception) -> None:
        """Make every call to `method` raise `error` until cleared."""
        self.failures[method] = error

    def clear_failures(self) -> None:
        self.failures.clear()

    def _enter(self, method: str) -> None:
        self.calls[method] += 1
        error = self.failures.get(method)
        if error is not None:
            raise error

    async def get_native_balance(self, account: Pubkey) -> int:
        self._enter("get_native_balance")
        return self.native_balances.get(account, 0)

    async def get_token_balance(self, account: Pubkey, mint: Pubkey) -> Optional[int]:
        self._enter("get_token_balance")
        return self.token_balances.get((account, mint))

    async def get_recent_signatures(self, account: Pubkey, limit: int) -> list[str]:
        self._enter("get_recent_signatures")
        return list(self.signatures.get(account, []))[:limit]

    async def request_airdrop(self, account: Pubkey, lamports: int) -> str:
        self._enter("request_airdrop")
        signature = fake_signature()
        self.native_balances[account] = self.native_balances.get(account, 0) + lamports
        self.record_signature(account, signature)
        logger.info(f"[dry-run] Airdropped {lamports} lamports")
        return signature

    async def confirm_transaction(self, signature: str, timeout_seconds: float) -> bool:
        self._enter("confirm_transaction")
        return self.confirm_result
