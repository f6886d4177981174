"""Smart-wallet connection and signing capability.

- WalletConnector: interface the host's passkey bridge implements
- DryRunWallet: simulated connector for development and tests
"""

from passkeyflow.signing.base import ConnectOptions, SignOptions, WalletConnector
from passkeyflow.signing.dry_run import DryRunWallet
from passkeyflow.signing.factory import create_connector

__all__ = [
    "ConnectOptions",
    "SignOptions",
    "WalletConnector",
    "DryRunWallet",
    "create_connector",
]
