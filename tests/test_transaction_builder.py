"""Tests for the transaction builder."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import decode_transfer
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import decode_transfer_checked, get_associated_token_address

from conftest import MERCHANT_ADDRESS, RECIPIENT_ADDRESS
from passkeyflow.errors import NoRouteAvailableError, SwapBuildFailedError
from passkeyflow.models import (
    BalanceSnapshot,
    InstructionList,
    PaymentIntent,
    RawPayload,
    SwapIntent,
    TransferIntent,
)
from passkeyflow.routing.base import SwapQuote
from passkeyflow.services.transaction_builder import TransactionBuilder
from passkeyflow.services.validator import IntentValidator

SNAPSHOT = BalanceSnapshot(native=Decimal("2.5"), token=Decimal("100"))


@pytest.fixture
def validator(assets):
    return IntentValidator(assets, MERCHANT_ADDRESS)


class TestTransferAndPayment:
    """Tests for instruction-list builds."""

    def test_transfer_is_one_system_transfer(self, router, validator, account):
        builder = TransactionBuilder(router)
        validated = validator.validate_transfer(
            TransferIntent(recipient=RECIPIENT_ADDRESS, amount="1.0"), SNAPSHOT
        )

        built = builder.build_transfer(account, validated)

        assert isinstance(built, InstructionList)
        assert len(built.instructions) == 1
        instruction = built.instructions[0]
        assert instruction.program_id == SYSTEM_PROGRAM_ID
        params = decode_transfer(instruction)
        assert params["from_pubkey"] == account
        assert params["to_pubkey"] == Pubkey.from_string(RECIPIENT_ADDRESS)
        assert params["lamports"] == 1_000_000_000

    def test_native_payment(self, router, validator, account):
        builder = TransactionBuilder(router)
        validated = validator.validate_payment(PaymentIntent(asset="SOL", amount="0.25"), SNAPSHOT)

        built = builder.build_payment(account, validated)

        assert len(built.instructions) == 1
        params = decode_transfer(built.instructions[0])
        assert params["to_pubkey"] == Pubkey.from_string(MERCHANT_ADDRESS)
        assert params["lamports"] == 250_000_000

    def test_token_payment_between_associated_accounts(self, router, validator, account, token_mint):
        builder = TransactionBuilder(router)
        validated = validator.validate_payment(PaymentIntent(asset="USDC", amount="12.5"), SNAPSHOT)

        built = builder.build_payment(account, validated)

        assert len(built.instructions) == 1
        instruction = built.instructions[0]
        assert instruction.program_id == TOKEN_PROGRAM_ID
        params = decode_transfer_checked(instruction)
        merchant = Pubkey.from_string(MERCHANT_ADDRESS)
        assert params.source == get_associated_token_address(account, token_mint)
        assert params.dest == get_associated_token_address(merchant, token_mint)
        assert params.mint == token_mint
        assert params.owner == account
        assert params.amount == 12_500_000
        assert params.decimals == 6


class TestSwap:
    """Tests for the aggregator round trip."""

    @pytest.mark.asyncio
    async def test_swap_returns_raw_payload(self, router, validator, account):
        builder = TransactionBuilder(router, max_slippage_bps=50)
        validated = validator.validate_swap(
            SwapIntent(from_asset="SOL", to_asset="USDC", amount="1.0"), SNAPSHOT
        )

        built = await builder.build_swap(account, validated)

        assert isinstance(built, RawPayload)
        assert built.transaction_base64
        assert built.metadata["quote"]["in_amount"] == 1_000_000_000
        assert "USDC" in built.description

    @pytest.mark.asyncio
    async def test_swap_requests_direct_route_with_slippage(self, validator, assets, account):
        aggregator = AsyncMock()
        aggregator.name = "mock"
        aggregator.get_quote.return_value = SwapQuote(
            provider="mock",
            input_mint=assets.native.mint,
            output_mint=assets.token.mint,
            in_amount=1_000_000_000,
            out_amount=149_850_000,
            slippage_bps=50,
        )
        aggregator.build_swap_transaction.return_value = "AQID"
        builder = TransactionBuilder(aggregator, max_slippage_bps=50, direct_routes_only=True)
        validated = validator.validate_swap(
            SwapIntent(from_asset="SOL", to_asset="USDC", amount="1"), SNAPSHOT
        )

        built = await builder.build_swap(account, validated)

        aggregator.get_quote.assert_awaited_once_with(
            input_mint=assets.native.mint,
            output_mint=assets.token.mint,
            amount=1_000_000_000,
            slippage_bps=50,
            direct_only=True,
        )
        quote = aggregator.get_quote.return_value
        aggregator.build_swap_transaction.assert_awaited_once_with(quote, account)
        assert built.transaction_base64 == "AQID"

    @pytest.mark.asyncio
    async def test_no_route(self, validator, account):
        aggregator = AsyncMock()
        aggregator.name = "mock"
        aggregator.get_quote.return_value = None
        builder = TransactionBuilder(aggregator)
        validated = validator.validate_swap(
            SwapIntent(from_asset="SOL", to_asset="USDC", amount="1"), SNAPSHOT
        )

        with pytest.raises(NoRouteAvailableError):
            await builder.build_swap(account, validated)
        aggregator.build_swap_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_payload(self, validator, account):
        aggregator = AsyncMock()
        aggregator.name = "mock"
        aggregator.get_quote.return_value = SwapQuote(
            provider="mock",
            input_mint="a",
            output_mint="b",
            in_amount=1,
            out_amount=1,
            slippage_bps=50,
        )
        aggregator.build_swap_transaction.return_value = None
        builder = TransactionBuilder(aggregator)
        validated = validator.validate_swap(
            SwapIntent(from_asset="SOL", to_asset="USDC", amount="1"), SNAPSHOT
        )

        with pytest.raises(SwapBuildFailedError):
            await builder.build_swap(account, validated)
