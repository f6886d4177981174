"""Solana JSON-RPC ledger provider.

Talks to a Solana RPC node over plain JSON-RPC with httpx.
API docs: https://solana.com/docs/rpc
"""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from passkeyflow.errors import LedgerError, RateLimitedError
from passkeyflow.providers.base import LedgerProvider
from passkeyflow.session import shorten_address

logger = logging.getLogger(__name__)

# JSON-RPC error code for invalid params ("could not find account")
INVALID_PARAMS_CODE = -32602
ACCOUNT_NOT_FOUND_MARKERS = ("could not find account", "account not found")
CONFIRMED_STATUSES = ("confirmed", "finalized")


class RpcResponseError(LedgerError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code

    @property
    def is_account_not_found(self) -> bool:
        lowered = self.message.lower()
        return any(marker in lowered for marker in ACCOUNT_NOT_FOUND_MARKERS)


class SolanaRpcProvider(LedgerProvider):
    """Ledger provider backed by a Solana JSON-RPC endpoint."""

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 15.0,
        poll_interval: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize RPC provider.

        Args:
            rpc_url: JSON-RPC endpoint
            commitment: Commitment level for reads
            timeout: Per-request timeout in seconds
            poll_interval: Seconds between confirmation polls
            client: Optional preconfigured httpx client
        """
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.poll_interval = poll_interval
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0

    @property
    def name(self) -> str:
        return "solana-rpc"

    async def _rpc(self, method: str, params: list) -> Any:
        """Send one JSON-RPC request and return its result."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise LedgerError(f"RPC {method} failed: {type(e).__name__}: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(f"429 Too Many Requests from RPC ({method})")
        if response.status_code != 200:
            raise LedgerError(f"RPC {method} HTTP {response.status_code}: {response.text[:200]}")

        data = response.json()
        if "error" in data:
            error = data["error"] or {}
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            if code == 429 or "rate limit" in message.lower():
                raise RateLimitedError(f"429 {message}")
            raise RpcResponseError(message, code=code)

        return data.get("result")

    async def get_native_balance(self, account: Pubkey) -> int:
        result = await self._rpc("getBalance", [str(account), {"commitment": self.commitment}])
        return int(result["value"])

    async def get_token_balance(self, account: Pubkey, mint: Pubkey) -> Optional[int]:
        ata = get_associated_token_address(account, mint)
        try:
            result = await self._rpc(
                "getTokenAccountBalance", [str(ata), {"commitment": self.commitment}]
            )
        except RpcResponseError as e:
            if e.code == INVALID_PARAMS_CODE or e.is_account_not_found:
                logger.debug(f"No token account {shorten_address(str(ata))} for mint {mint}")
                return None
            raise

        value = (result or {}).get("value")
        if not value:
            return None
        return int(value["amount"])

    async def get_recent_signatures(self, account: Pubkey, limit: int) -> list[str]:
        result = await self._rpc(
            "getSignaturesForAddress",
            [str(account), {"limit": limit, "commitment": self.commitment}],
        )
        return [entry["signature"] for entry in (result or [])][:limit]

    async def request_airdrop(self, account: Pubkey, lamports: int) -> str:
        logger.info(f"Requesting airdrop of {lamports} lamports to {shorten_address(str(account))}")
        return await self._rpc("requestAirdrop", [str(account), lamports])

    async def confirm_transaction(self, signature: str, timeout_seconds: float) -> bool:
        deadline = time.monotonic() + timeout_seconds

        while True:
            result = await self._rpc(
                "getSignatureStatuses",
                [[signature], {"searchTransactionHistory": False}],
            )
            statuses = (result or {}).get("value") or [None]
            status = statuses[0]

            if status:
                if status.get("err"):
                    raise LedgerError(f"Transaction {signature[:16]}... failed: {status['err']}")
                if status.get("confirmationStatus") in CONFIRMED_STATUSES:
                    return True

            if time.monotonic() >= deadline:
                logger.warning(f"Confirmation timed out for {signature[:16]}...")
                return False

            await asyncio.sleep(self.poll_interval)

    async def close(self) -> None:
        await self._client.aclose()
