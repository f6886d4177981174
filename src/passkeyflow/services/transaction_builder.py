"""Transaction builder for validated intents.

Builds what the signing capability submits. NO signing or broadcasting
happens here.

- Transfer: one system-program transfer
- Payment: one system transfer (native) or one token transfer between
  associated token accounts
- Swap: aggregator round trip; the returned payload is forwarded as-is
"""

import logging

from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    get_associated_token_address,
    transfer_checked,
)
from spl.token.models import TransferCheckedParams

from passkeyflow.assets import Asset
from passkeyflow.errors import NoRouteAvailableError, SwapBuildFailedError
from passkeyflow.models import InstructionList, RawPayload
from passkeyflow.routing.base import AggregatorProvider
from passkeyflow.services.validator import (
    ValidatedAmount,
    ValidatedPayment,
    ValidatedSwap,
    ValidatedTransfer,
)
from passkeyflow.session import shorten_address

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """Builds instruction lists and aggregator payloads.

    Only accepts validated intents; raw user input never reaches here.
    """

    def __init__(
        self,
        aggregator: AggregatorProvider,
        max_slippage_bps: int = 50,
        direct_routes_only: bool = True,
    ):
        self.aggregator = aggregator
        self.max_slippage_bps = max_slippage_bps
        self.direct_routes_only = direct_routes_only

    @staticmethod
    def _native_transfer(owner: Pubkey, to: Pubkey, lamports: int):
        return transfer(TransferParams(from_pubkey=owner, to_pubkey=to, lamports=lamports))

    @staticmethod
    def _token_transfer(owner: Pubkey, to_owner: Pubkey, asset: Asset, base_units: int):
        mint = Pubkey.from_string(asset.mint)
        source = get_associated_token_address(owner, mint)
        dest = get_associated_token_address(to_owner, mint)
        return transfer_checked(
            TransferCheckedParams(
                program_id=TOKEN_PROGRAM_ID,
                source=source,
                mint=mint,
                dest=dest,
                owner=owner,
                amount=base_units,
                decimals=asset.decimals,
            )
        )

    def build_transfer(self, owner: Pubkey, validated: ValidatedTransfer) -> InstructionList:
        """Build a native transfer to the validated recipient."""
        amount = validated.amount
        instruction = self._native_transfer(owner, validated.recipient, amount.base_units)

        logger.info(
            f"Built transfer: {amount.amount} {amount.asset.symbol} "
            f"({amount.base_units} base units) "
            f"{shorten_address(str(owner))} -> {shorten_address(str(validated.recipient))}"
        )
        return InstructionList(
            instructions=[instruction],
            description=f"Send {amount.amount} {amount.asset.symbol} "
            f"to {shorten_address(str(validated.recipient))}",
        )

    def build_payment(self, owner: Pubkey, validated: ValidatedPayment) -> InstructionList:
        """Build a payment to the merchant in the chosen asset."""
        amount: ValidatedAmount = validated.amount
        if amount.asset.is_native:
            instruction = self._native_transfer(owner, validated.merchant, amount.base_units)
        else:
            instruction = self._token_transfer(
                owner, validated.merchant, amount.asset, amount.base_units
            )

        logger.info(
            f"Built payment: {amount.amount} {amount.asset.symbol} "
            f"to merchant {shorten_address(str(validated.merchant))}"
        )
        return InstructionList(
            instructions=[instruction],
            description=f"Pay {amount.amount} {amount.asset.symbol} to merchant",
        )

    async def build_swap(self, owner: Pubkey, validated: ValidatedSwap) -> RawPayload:
        """Quote a route and fetch its serialized transaction.

        Raises:
            NoRouteAvailableError: If the aggregator returns no route
            SwapBuildFailedError: If no transaction payload comes back
        """
        amount = validated.amount
        logger.info(
            f"Requesting {self.aggregator.name} route: {amount.amount} "
            f"{validated.from_asset.symbol} -> {validated.to_asset.symbol} "
            f"(slippage {self.max_slippage_bps} bps, direct only: {self.direct_routes_only})"
        )

        quote = await self.aggregator.get_quote(
            input_mint=validated.from_asset.mint,
            output_mint=validated.to_asset.mint,
            amount=amount.base_units,
            slippage_bps=self.max_slippage_bps,
            direct_only=self.direct_routes_only,
        )
        if quote is None:
            raise NoRouteAvailableError(
                f"No route for {amount.amount} {validated.from_asset.symbol} "
                f"-> {validated.to_asset.symbol}"
            )

        payload = await self.aggregator.build_swap_transaction(quote, owner)
        if not payload:
            raise SwapBuildFailedError(f"{self.aggregator.name} returned no swap transaction")

        expected = validated.to_asset.from_base_units(quote.out_amount)
        logger.info(
            f"Built swap payload via {quote.provider}: expect ~{expected} {validated.to_asset.symbol}"
        )
        return RawPayload(
            transaction_base64=payload,
            description=f"Swap {amount.amount} {validated.from_asset.symbol} "
            f"for ~{expected} {validated.to_asset.symbol}",
            metadata={"quote": quote.to_dict()},
        )
