"""Dry-run wallet connector (no device, no network).

Records every submission and returns synthetic signatures. Failures can be
scripted to exercise the error paths.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from passkeyflow.models import BuiltTransaction
from passkeyflow.providers.dryrun import DryRunLedger, fake_signature
from passkeyflow.signing.base import ConnectOptions, SignOptions, WalletConnector

logger = logging.getLogger(__name__)


@dataclass
class Submission:
    """A transaction handed to the connector."""

    transaction: BuiltTransaction
    options: SignOptions
    signature: str


class DryRunWallet(WalletConnector):
    """Simulated smart wallet."""

    def __init__(
        self,
        account: Optional[Pubkey] = None,
        ledger: Optional[DryRunLedger] = None,
    ):
        """Initialize dry-run wallet.

        Args:
            account: Account to connect as (random if not given)
            ledger: Dry-run ledger to record signatures into
        """
        self.account = account or Keypair().pubkey()
        self.ledger = ledger
        self.connected = False
        self.submissions: list[Submission] = []
        self.connect_error: Optional[Exception] = None
        self.sign_error: Optional[Exception] = None

    @property
    def name(self) -> str:
        return "dryrun"

    async def connect(self, options: ConnectOptions) -> Pubkey:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        logger.info(f"[dry-run] Connected {self.account} (fee mode: {options.fee_mode})")
        return self.account

    async def disconnect(self) -> None:
        self.connected = False
        logger.info("[dry-run] Disconnected")

    async def sign_and_send(self, transaction: BuiltTransaction, options: SignOptions) -> str:
        if self.sign_error is not None:
            raise self.sign_error

        signature = fake_signature()
        self.submissions.append(Submission(transaction, options, signature))
        if self.ledger is not None:
            self.ledger.record_signature(self.account, signature)

        logger.info(f"[dry-run] Signed and sent {type(transaction).__name__}: {signature[:16]}...")
        return signature
