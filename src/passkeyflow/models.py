"""Intent and built-transaction models.

Intents are what a user submits from a form. Built transactions are what
the builder hands to the submission pipeline, in one of two shapes: a list
of instructions, or an opaque pre-built payload from the aggregator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from solders.instruction import Instruction

from passkeyflow.assets import Asset


class IntentKind(str, Enum):
    """Kind of user operation; also the key of its pending flag."""

    SEND = "send"
    SWAP = "swap"
    PAY = "pay"
    AIRDROP = "airdrop"


@dataclass(frozen=True)
class TransferIntent:
    """Send native asset to a user-entered recipient."""

    recipient: str
    amount: str
    kind: IntentKind = IntentKind.SEND


@dataclass(frozen=True)
class SwapIntent:
    """Exchange one asset for another through the aggregator."""

    from_asset: str
    to_asset: str
    amount: str
    kind: IntentKind = IntentKind.SWAP


@dataclass(frozen=True)
class PaymentIntent:
    """Pay the configured merchant in the given asset."""

    asset: str
    amount: str
    kind: IntentKind = IntentKind.PAY


Intent = Union[TransferIntent, SwapIntent, PaymentIntent]


@dataclass
class InstructionList:
    """Instruction-based transaction, assembled by the signing capability."""

    instructions: list[Instruction]
    description: str = ""


@dataclass
class RawPayload:
    """Opaque serialized transaction (base64) forwarded without inspection."""

    transaction_base64: str
    description: str = ""
    metadata: dict = field(default_factory=dict)


BuiltTransaction = Union[InstructionList, RawPayload]


@dataclass(frozen=True)
class BalanceSnapshot:
    """Last known balances. None means unknown, which is not the same as 0."""

    native: Optional[Decimal] = None
    token: Optional[Decimal] = None
    as_of: Optional[datetime] = None

    def balance_of(self, asset: Asset) -> Optional[Decimal]:
        return self.native if asset.is_native else self.token

    def to_dict(self) -> dict:
        return {
            "native": str(self.native) if self.native is not None else None,
            "token": str(self.token) if self.token is not None else None,
            "as_of": self.as_of.isoformat() if self.as_of else None,
        }
