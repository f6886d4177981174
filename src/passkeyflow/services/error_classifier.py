"""Failure classification and user feedback state.

Raw failures from the capabilities are unstructured messages. They are
mapped onto ErrorCategory by keyword inspection in a fixed priority order:

    signing > user cancellation > insufficient balance > invalid input
    > rate limiting > generic network/ledger error

Typed WalletErrors with a specific category skip the keyword scan.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from passkeyflow.errors import ErrorCategory, WalletError

logger = logging.getLogger(__name__)

FAUCET_URL = "https://faucet.solana.com"

SIGNING_MARKERS = ("signing failed", "webauthn", "passkey", "authenticator", "credential")
CANCEL_MARKERS = (
    "user rejected",
    "user cancelled",
    "user canceled",
    "rejected by user",
    "cancelled by user",
    "user denied",
)
INSUFFICIENT_MARKERS = ("insufficient", "not enough")
INVALID_MARKERS = ("invalid",)
ADDRESS_MARKERS = ("address", "pubkey", "public key", "recipient", "base58")
RATE_LIMIT_MARKERS = ("429", "rate limit", "too many requests", "airdrop request limit")


def _contains(message: str, markers: tuple[str, ...]) -> bool:
    return any(marker in message for marker in markers)


def classify_message(message: str) -> ErrorCategory:
    """Map a raw failure message onto an ErrorCategory."""
    lowered = (message or "").lower()

    if _contains(lowered, SIGNING_MARKERS):
        return ErrorCategory.SIGNING_FAILED
    if _contains(lowered, CANCEL_MARKERS):
        return ErrorCategory.USER_CANCELLED
    if _contains(lowered, INSUFFICIENT_MARKERS):
        return ErrorCategory.INSUFFICIENT_BALANCE
    if _contains(lowered, INVALID_MARKERS):
        if _contains(lowered, ADDRESS_MARKERS):
            return ErrorCategory.INVALID_ADDRESS
        return ErrorCategory.INVALID_AMOUNT
    if _contains(lowered, RATE_LIMIT_MARKERS):
        return ErrorCategory.RATE_LIMITED
    return ErrorCategory.NETWORK_OR_LEDGER_ERROR


def classify(error: Union[BaseException, str]) -> ErrorCategory:
    """Classify an exception or raw message."""
    if isinstance(error, WalletError) and error.category != ErrorCategory.NETWORK_OR_LEDGER_ERROR:
        return error.category
    message = error if isinstance(error, str) else str(error)
    return classify_message(message)


class NoticeLevel(str, Enum):
    ERROR = "error"
    SUCCESS = "success"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    """A transient message for the user."""

    level: NoticeLevel
    title: str
    body: str
    category: Optional[ErrorCategory] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "title": self.title,
            "body": self.body,
            "category": self.category.value if self.category else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# Remediation hints per category. Categories whose message is already
# user-facing (validation failures) show that message as the body.
_TITLES = {
    ErrorCategory.INVALID_ADDRESS: "Invalid address",
    ErrorCategory.INVALID_AMOUNT: "Invalid amount",
    ErrorCategory.INSUFFICIENT_BALANCE: "Insufficient balance",
    ErrorCategory.IDENTICAL_ASSETS: "Pick two different assets",
    ErrorCategory.MERCHANT_NOT_CONFIGURED: "Payments unavailable",
    ErrorCategory.NO_ROUTE_AVAILABLE: "No swap route",
    ErrorCategory.SWAP_BUILD_FAILED: "Swap could not be prepared",
    ErrorCategory.SIGNING_FAILED: "Signing failed",
    ErrorCategory.USER_CANCELLED: "Transaction cancelled",
    ErrorCategory.RATE_LIMITED: "Too many requests",
    ErrorCategory.NETWORK_OR_LEDGER_ERROR: "Transaction failed",
}

_HINTS = {
    ErrorCategory.INVALID_ADDRESS: "Check the recipient address and try again.",
    ErrorCategory.INVALID_AMOUNT: "Enter an amount greater than 0.",
    ErrorCategory.INSUFFICIENT_BALANCE: "Lower the amount or top up your wallet.",
    ErrorCategory.IDENTICAL_ASSETS: "The asset you sell and the asset you buy must differ.",
    ErrorCategory.MERCHANT_NOT_CONFIGURED: "No merchant address is configured for payments.",
    ErrorCategory.NO_ROUTE_AVAILABLE: (
        "The aggregator found no route for this pair and amount. "
        "Try a different amount or asset."
    ),
    ErrorCategory.SWAP_BUILD_FAILED: "The aggregator did not return a transaction. Try again shortly.",
    ErrorCategory.SIGNING_FAILED: (
        "Your passkey could not sign. This usually means:\n"
        "1. The app is served over HTTPS on localhost (use http://localhost instead)\n"
        "2. The browser does not support WebAuthn\n"
        "3. The wallet connection dropped; reconnect and retry"
    ),
    ErrorCategory.USER_CANCELLED: "You cancelled the request. Nothing was sent.",
    ErrorCategory.RATE_LIMITED: "The network is rate limiting requests. Wait a moment and retry.",
    ErrorCategory.NETWORK_OR_LEDGER_ERROR: "The network or ledger rejected the request.",
}

_MESSAGE_AS_BODY = frozenset(
    {
        ErrorCategory.INVALID_ADDRESS,
        ErrorCategory.INVALID_AMOUNT,
        ErrorCategory.INSUFFICIENT_BALANCE,
    }
)


def build_error_notice(
    category: ErrorCategory,
    message: str = "",
    operation: Optional[str] = None,
) -> Notice:
    """Build the {title, body} pair shown for a failure."""
    title = _TITLES[category]
    if category in _MESSAGE_AS_BODY and message:
        body = message
    else:
        body = _HINTS[category]

    if operation == "airdrop":
        title = "Airdrop failed"
        if category == ErrorCategory.RATE_LIMITED:
            body = f"Rate limit reached. Please use {FAUCET_URL} instead."
        elif category == ErrorCategory.NETWORK_OR_LEDGER_ERROR:
            body = f"Try the web faucet at {FAUCET_URL}"
    elif category == ErrorCategory.NETWORK_OR_LEDGER_ERROR and message:
        body = f"{body}\n{message}"

    return Notice(
        level=NoticeLevel.ERROR,
        title=title,
        body=body,
        category=category,
        created_at=datetime.now(timezone.utc),
    )


class FeedbackState:
    """Holds the single notice currently shown to the user.

    A notice stays until the next user action replaces or clears it, or the
    user dismisses it.
    """

    def __init__(self) -> None:
        self._notice: Optional[Notice] = None

    @property
    def current(self) -> Optional[Notice]:
        return self._notice

    def report_error(
        self,
        error: Union[BaseException, str],
        operation: Optional[str] = None,
    ) -> Notice:
        """Classify a failure and show it."""
        category = classify(error)
        message = error.message if isinstance(error, WalletError) else str(error)
        notice = build_error_notice(category, message, operation)
        logger.info(f"Feedback [{category.value}] {notice.title}")
        self._notice = notice
        return notice

    def report_category(self, category: ErrorCategory, message: str = "") -> Notice:
        notice = build_error_notice(category, message)
        self._notice = notice
        return notice

    def report_success(self, title: str, body: str = "") -> Notice:
        self._notice = Notice(
            level=NoticeLevel.SUCCESS,
            title=title,
            body=body,
            created_at=datetime.now(timezone.utc),
        )
        return self._notice

    def report_info(self, title: str, body: str = "") -> Notice:
        self._notice = Notice(
            level=NoticeLevel.INFO,
            title=title,
            body=body,
            created_at=datetime.now(timezone.utc),
        )
        return self._notice

    def clear(self) -> None:
        self._notice = None
