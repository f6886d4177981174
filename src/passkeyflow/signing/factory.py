"""Wallet connector factory.

Only the dry-run connector ships with the package. A real passkey bridge
lives in the host (it drives the browser's WebAuthn prompt) and is
injected into the orchestrator directly.
"""

import logging
from typing import Optional

from passkeyflow.config import Settings
from passkeyflow.providers.base import LedgerProvider
from passkeyflow.providers.dryrun import DryRunLedger
from passkeyflow.signing.base import WalletConnector
from passkeyflow.signing.dry_run import DryRunWallet

logger = logging.getLogger(__name__)


def create_connector(settings: Settings, ledger: Optional[LedgerProvider] = None) -> WalletConnector:
    """Create the configured wallet connector.

    Raises:
        RuntimeError: If not in dry-run mode and no connector was injected
    """
    if not settings.dry_run:
        raise RuntimeError(
            "No passkey wallet connector configured. Pass a WalletConnector "
            "to create_app() or set DRY_RUN=true."
        )

    logger.info("Using dry-run wallet connector")
    return DryRunWallet(ledger=ledger if isinstance(ledger, DryRunLedger) else None)
