"""Ledger query providers."""

from passkeyflow.providers.base import LedgerProvider
from passkeyflow.providers.dryrun import DryRunLedger
from passkeyflow.providers.factory import create_ledger_provider
from passkeyflow.providers.solana_rpc import SolanaRpcProvider

__all__ = [
    "LedgerProvider",
    "DryRunLedger",
    "SolanaRpcProvider",
    "create_ledger_provider",
]
