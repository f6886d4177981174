"""Wallet session state.

The session is owned by the host. Transitions come from the connect and
disconnect capability; the orchestrator subscribes to them and never
computes a transition itself.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from solders.pubkey import Pubkey

from passkeyflow.errors import SessionInactiveError

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """Connection status of the smart-wallet session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def shorten_address(address: str, keep: int = 6) -> str:
    """Shorten an address for display and logs."""
    if not address or len(address) <= keep * 2:
        return address
    return f"{address[:keep]}...{address[-keep:]}"


@dataclass(frozen=True)
class Session:
    """Snapshot of the session: status plus the active account."""

    status: SessionStatus = SessionStatus.DISCONNECTED
    account: Optional[Pubkey] = None

    @property
    def is_connected(self) -> bool:
        return self.status == SessionStatus.CONNECTED and self.account is not None

    @property
    def address(self) -> str:
        return str(self.account) if self.account is not None else ""

    @property
    def short_address(self) -> str:
        return shorten_address(self.address)


SessionListener = Callable[[Session, Session], None]


class SessionState:
    """Holds the current session and notifies listeners on transitions.

    Listeners receive (previous, current) and are called synchronously in
    registration order.
    """

    def __init__(self) -> None:
        self._session = Session()
        self._listeners: list[SessionListener] = []

    @property
    def current(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def account(self) -> Optional[Pubkey]:
        return self._session.account

    @property
    def is_connected(self) -> bool:
        return self._session.is_connected

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def require_account(self, operation: str = "operation") -> Pubkey:
        """Return the active account, or refuse when disconnected."""
        if not self._session.is_connected:
            raise SessionInactiveError(operation)
        return self._session.account

    def mark_connecting(self) -> None:
        self._transition(Session(status=SessionStatus.CONNECTING))

    def mark_connected(self, account: Pubkey) -> None:
        self._transition(Session(status=SessionStatus.CONNECTED, account=account))

    def mark_disconnected(self) -> None:
        self._transition(Session())

    def _transition(self, new: Session) -> None:
        previous = self._session
        if previous == new:
            return
        self._session = new
        logger.info(
            f"Session {previous.status.value} -> {new.status.value}"
            + (f" ({new.short_address})" if new.account is not None else "")
        )
        for listener in list(self._listeners):
            listener(previous, new)
