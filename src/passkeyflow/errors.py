"""Error taxonomy for wallet operations.

Every failure the orchestrator reports to a user falls into one of the
ErrorCategory values. Local validation errors are raised before any
external call is made; adapter errors carry the raw message so the
classifier can inspect it.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Closed set of user-facing failure categories."""

    INVALID_ADDRESS = "invalid_address"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    IDENTICAL_ASSETS = "identical_assets"
    MERCHANT_NOT_CONFIGURED = "merchant_not_configured"
    NO_ROUTE_AVAILABLE = "no_route_available"
    SWAP_BUILD_FAILED = "swap_build_failed"
    SIGNING_FAILED = "signing_failed"
    USER_CANCELLED = "user_cancelled"
    RATE_LIMITED = "rate_limited"
    NETWORK_OR_LEDGER_ERROR = "network_or_ledger_error"

    @property
    def is_local(self) -> bool:
        """Validation categories resolved before any external call."""
        return self in LOCAL_CATEGORIES


LOCAL_CATEGORIES = frozenset(
    {
        ErrorCategory.INVALID_ADDRESS,
        ErrorCategory.INVALID_AMOUNT,
        ErrorCategory.IDENTICAL_ASSETS,
        ErrorCategory.MERCHANT_NOT_CONFIGURED,
    }
)


class WalletError(Exception):
    """Base exception for categorised wallet failures."""

    category: ErrorCategory = ErrorCategory.NETWORK_OR_LEDGER_ERROR

    def __init__(self, message: str, category: Optional[ErrorCategory] = None):
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category


class InvalidAddressError(WalletError):
    category = ErrorCategory.INVALID_ADDRESS


class InvalidAmountError(WalletError):
    category = ErrorCategory.INVALID_AMOUNT


class InsufficientBalanceError(WalletError):
    category = ErrorCategory.INSUFFICIENT_BALANCE


class IdenticalAssetsError(WalletError):
    category = ErrorCategory.IDENTICAL_ASSETS


class MerchantNotConfiguredError(WalletError):
    category = ErrorCategory.MERCHANT_NOT_CONFIGURED


class NoRouteAvailableError(WalletError):
    category = ErrorCategory.NO_ROUTE_AVAILABLE


class SwapBuildFailedError(WalletError):
    category = ErrorCategory.SWAP_BUILD_FAILED


class SigningError(WalletError):
    """Raised by signing capabilities when the device step cannot complete."""

    category = ErrorCategory.SIGNING_FAILED


class UserCancelledError(WalletError):
    category = ErrorCategory.USER_CANCELLED


class RateLimitedError(WalletError):
    category = ErrorCategory.RATE_LIMITED


class LedgerError(WalletError):
    """Ledger RPC failure (transport or JSON-RPC error)."""

    category = ErrorCategory.NETWORK_OR_LEDGER_ERROR


class AggregatorError(WalletError):
    """Aggregator HTTP failure other than an explicit no-route answer."""

    category = ErrorCategory.NETWORK_OR_LEDGER_ERROR


class SessionInactiveError(RuntimeError):
    """Raised when a component is used without a connected session."""

    def __init__(self, operation: str = "operation"):
        self.operation = operation
        super().__init__(f"Cannot run {operation}: no connected wallet session")


class SubmissionInProgressError(RuntimeError):
    """Raised when a form submits while its previous submission is pending."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"A {kind} submission is already in progress")
