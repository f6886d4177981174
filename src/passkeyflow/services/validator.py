"""Amount and address validation for user intents.

Every intent passes through here before the builder sees it. Validation
never touches the network: it works from the user's input, the configured
assets and merchant, and the last known balance snapshot.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from solders.pubkey import Pubkey

from passkeyflow.assets import Asset, AssetRegistry
from passkeyflow.errors import (
    IdenticalAssetsError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    MerchantNotConfiguredError,
)
from passkeyflow.models import BalanceSnapshot, PaymentIntent, SwapIntent, TransferIntent

logger = logging.getLogger(__name__)

BASE58_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


@dataclass(frozen=True)
class ValidatedAmount:
    """A parsed amount with its base-unit conversion."""

    asset: Asset
    amount: Decimal
    base_units: int


@dataclass(frozen=True)
class ValidatedTransfer:
    recipient: Pubkey
    amount: ValidatedAmount


@dataclass(frozen=True)
class ValidatedSwap:
    from_asset: Asset
    to_asset: Asset
    amount: ValidatedAmount


@dataclass(frozen=True)
class ValidatedPayment:
    merchant: Pubkey
    amount: ValidatedAmount


def validate_address(value: str, label: str = "recipient") -> Pubkey:
    """Decode an account address.

    Raises:
        InvalidAddressError: If the string is not a well-formed address
    """
    raw = (value or "").strip()
    if not BASE58_PATTERN.match(raw):
        raise InvalidAddressError(f"Invalid {label} address format")
    try:
        return Pubkey.from_string(raw)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid {label} address format") from e


def parse_amount(value: str) -> Decimal:
    """Parse a user-entered decimal amount.

    Raises:
        InvalidAmountError: If not a finite number greater than 0
    """
    raw = (value or "").strip().replace(",", "")
    if not raw:
        raise InvalidAmountError("Amount is required")

    try:
        amount = Decimal(raw)
    except InvalidOperation as e:
        raise InvalidAmountError("Amount must be a valid number") from e

    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a valid number")
    if amount <= 0:
        raise InvalidAmountError("Amount must be greater than 0")
    return amount


def convert_amount(value: str, asset: Asset) -> ValidatedAmount:
    """Parse an amount and convert it to the asset's base units."""
    amount = parse_amount(value)
    try:
        base_units = asset.to_base_units(amount)
    except InvalidOperation as e:
        raise InvalidAmountError("Amount is too large") from e

    if base_units <= 0:
        raise InvalidAmountError(
            f"Amount is smaller than the smallest unit of {asset.symbol}"
        )
    return ValidatedAmount(asset=asset, amount=amount, base_units=base_units)


def check_balance(amount: ValidatedAmount, snapshot: BalanceSnapshot) -> None:
    """Reject amounts above the last known balance.

    An unknown balance skips the check; the submission itself may still be
    rejected by the ledger for insufficient funds.
    """
    known = snapshot.balance_of(amount.asset)
    if known is None:
        logger.warning(
            f"{amount.asset.symbol} balance unknown; skipping balance check "
            f"for {amount.amount} {amount.asset.symbol}"
        )
        return

    if amount.base_units > amount.asset.to_base_units(known):
        raise InsufficientBalanceError(
            f"Insufficient balance. You have {known:.4f} {amount.asset.symbol}"
        )


class IntentValidator:
    """Validates intents against the configured assets and merchant."""

    def __init__(self, assets: AssetRegistry, merchant_address: Optional[str] = None):
        self.assets = assets
        self.merchant_address = (merchant_address or "").strip() or None

    def _resolve_asset(self, symbol: str) -> Asset:
        asset = self.assets.get(symbol)
        if asset is None:
            raise InvalidAmountError(
                f"Unsupported asset: {symbol!r} (expected one of {', '.join(self.assets.symbols)})"
            )
        return asset

    def validate_transfer(
        self, intent: TransferIntent, snapshot: BalanceSnapshot
    ) -> ValidatedTransfer:
        recipient = validate_address(intent.recipient, "recipient")
        amount = convert_amount(intent.amount, self.assets.native)
        check_balance(amount, snapshot)
        return ValidatedTransfer(recipient=recipient, amount=amount)

    def validate_swap(self, intent: SwapIntent, snapshot: BalanceSnapshot) -> ValidatedSwap:
        from_symbol = (intent.from_asset or "").strip().upper()
        if from_symbol == (intent.to_asset or "").strip().upper():
            raise IdenticalAssetsError(f"Cannot swap {from_symbol} for itself")

        from_asset = self._resolve_asset(intent.from_asset)
        to_asset = self._resolve_asset(intent.to_asset)

        amount = convert_amount(intent.amount, from_asset)
        check_balance(amount, snapshot)
        return ValidatedSwap(from_asset=from_asset, to_asset=to_asset, amount=amount)

    def validate_payment(
        self, intent: PaymentIntent, snapshot: BalanceSnapshot
    ) -> ValidatedPayment:
        if not self.merchant_address:
            raise MerchantNotConfiguredError("No merchant address configured")

        merchant = validate_address(self.merchant_address, "merchant")
        asset = self._resolve_asset(intent.asset)
        amount = convert_amount(intent.amount, asset)
        check_balance(amount, snapshot)
        return ValidatedPayment(merchant=merchant, amount=amount)
