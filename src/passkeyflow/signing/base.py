"""Base interface for the passkey smart-wallet capability.

Connection and signing happen outside this package (device passkey via
WebAuthn). The orchestrator only sees three operations:
1. connect: authenticate and return the smart-wallet account
2. sign_and_send: sign a built transaction and submit it, paying fees
   through the configured fee asset
3. disconnect: end the session
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from solders.pubkey import Pubkey

from passkeyflow.models import BuiltTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectOptions:
    """Options passed to connect.

    Attributes:
        fee_mode: How fees are paid ("paymaster" sponsors them)
    """

    fee_mode: str = "paymaster"


@dataclass(frozen=True)
class SignOptions:
    """Options passed to sign_and_send.

    Attributes:
        fee_asset: Asset the paymaster charges fees in
    """

    fee_asset: str


class WalletConnector(ABC):
    """Abstract base class for smart-wallet connectors.

    Implementations raise SigningError when the device authentication step
    cannot complete, and UserCancelledError (or an error whose message says
    the user rejected) when the user dismisses the prompt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Connector name."""
        pass

    @abstractmethod
    async def connect(self, options: ConnectOptions) -> Pubkey:
        """Authenticate and return the smart-wallet account."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """End the wallet session."""
        pass

    @abstractmethod
    async def sign_and_send(self, transaction: BuiltTransaction, options: SignOptions) -> str:
        """Sign and submit a transaction.

        Args:
            transaction: InstructionList or RawPayload
            options: Fee options

        Returns:
            Transaction signature
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
