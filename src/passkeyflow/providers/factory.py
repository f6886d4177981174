"""Ledger provider factory."""

import logging

from passkeyflow.config import Settings
from passkeyflow.providers.base import LedgerProvider
from passkeyflow.providers.dryrun import DryRunLedger
from passkeyflow.providers.solana_rpc import SolanaRpcProvider

logger = logging.getLogger(__name__)


def create_ledger_provider(settings: Settings) -> LedgerProvider:
    """Create the configured ledger provider.

    - dry_run: in-memory DryRunLedger
    - otherwise: SolanaRpcProvider against settings.rpc_url
    """
    if settings.dry_run:
        logger.info("Using dry-run ledger")
        return DryRunLedger()

    logger.info(f"Using Solana RPC ledger at {settings.rpc_url}")
    return SolanaRpcProvider(
        rpc_url=settings.rpc_url,
        commitment=settings.rpc_commitment,
        timeout=settings.rpc_timeout_seconds,
    )
