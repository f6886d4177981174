"""Ledger query capability interface."""

from abc import ABC, abstractmethod
from typing import Optional

from solders.pubkey import Pubkey


class LedgerProvider(ABC):
    """Abstract base class for ledger query backends.

    All amounts are integer base units.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        raise NotImplementedError()

    @abstractmethod
    async def get_native_balance(self, account: Pubkey) -> int:
        """Get native balance in lamports."""
        raise NotImplementedError()

    @abstractmethod
    async def get_token_balance(self, account: Pubkey, mint: Pubkey) -> Optional[int]:
        """Get token balance held in the account's associated token account.

        Returns:
            Balance in base units, or None if the token account does not exist
        """
        raise NotImplementedError()

    @abstractmethod
    async def get_recent_signatures(self, account: Pubkey, limit: int) -> list[str]:
        """Get recent transaction signatures, most recent first."""
        raise NotImplementedError()

    @abstractmethod
    async def request_airdrop(self, account: Pubkey, lamports: int) -> str:
        """Request test funds (devnet/testnet only).

        Returns:
            Airdrop transaction signature
        """
        raise NotImplementedError()

    @abstractmethod
    async def confirm_transaction(self, signature: str, timeout_seconds: float) -> bool:
        """Wait until a signature is confirmed.

        Returns:
            True if confirmed, False on timeout
        """
        raise NotImplementedError()

    async def close(self) -> None:
        """Release network resources."""
        return None
