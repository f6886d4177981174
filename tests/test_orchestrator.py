"""End-to-end tests for the wallet orchestrator (dry-run capabilities)."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest
from solders.pubkey import Pubkey
from solders.system_program import decode_transfer

from conftest import RECIPIENT_ADDRESS, make_settings
from passkeyflow.errors import (
    ErrorCategory,
    RateLimitedError,
    SessionInactiveError,
    SubmissionInProgressError,
    UserCancelledError,
)
from passkeyflow.models import (
    InstructionList,
    IntentKind,
    PaymentIntent,
    RawPayload,
    SwapIntent,
    TransferIntent,
)
from passkeyflow.orchestrator import WalletOrchestrator
from passkeyflow.routing.jupiter import JupiterAggregator
from passkeyflow.services.balance_sync import RefreshStatus, TimerState
from passkeyflow.services.error_classifier import NoticeLevel
from passkeyflow.session import SessionStatus


class TestSession:
    """Tests for connect/disconnect gating."""

    @pytest.mark.asyncio
    async def test_operations_refused_when_disconnected(self, orchestrator, wallet):
        with pytest.raises(SessionInactiveError):
            await orchestrator.send(TransferIntent(recipient=RECIPIENT_ADDRESS, amount="1"))
        with pytest.raises(SessionInactiveError):
            await orchestrator.refresh()
        with pytest.raises(SessionInactiveError):
            await orchestrator.request_airdrop()
        assert wallet.submissions == []

    @pytest.mark.asyncio
    async def test_connect_runs_initial_sync(self, orchestrator, ledger, account):
        ledger.record_signature(account, "sig1")

        result = await orchestrator.connect()

        assert result.success
        assert orchestrator.session.status == SessionStatus.CONNECTED
        assert orchestrator.session.account == account
        assert orchestrator.snapshot.native == Decimal("2.5")
        assert orchestrator.snapshot.token == Decimal("0")
        assert orchestrator.history == ["sig1"]
        assert orchestrator.synchronizer.timer_state == TimerState.ENABLED
        await orchestrator.disconnect()

    @pytest.mark.asyncio
    async def test_connect_failure(self, orchestrator, wallet):
        wallet.connect_error = UserCancelledError("User cancelled passkey prompt")

        result = await orchestrator.connect()

        assert not result.success
        assert result.category == ErrorCategory.USER_CANCELLED
        assert orchestrator.session.status == SessionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_clears_state(self, connected, wallet):
        await connected.send(TransferIntent(recipient=RECIPIENT_ADDRESS, amount="1"))

        await connected.disconnect()

        assert not wallet.connected
        assert connected.session.status == SessionStatus.DISCONNECTED
        assert connected.snapshot.native is None
        assert connected.history == []
        assert not connected.synchronizer.timer_running
        assert connected.pipeline.pending_resyncs == 0

    @pytest.mark.asyncio
    async def test_short_address(self, connected, account):
        state = connected.state()

        assert state["session"]["address"] == str(account)
        assert state["session"]["short_address"] == f"{str(account)[:6]}...{str(account)[-6:]}"


class TestTransfer:
    """Transfer scenarios."""

    @pytest.mark.asyncio
    async def test_transfer_success_triggers_delayed_refresh(self, connected, wallet, ledger):
        native_reads = ledger.calls["get_native_balance"]

        result = await connected.send(TransferIntent(recipient=RECIPIENT_ADDRESS, amount="1.0"))

        assert result.success
        assert result.reset_form
        assert connected.notice.level == NoticeLevel.SUCCESS
        assert len(wallet.submissions) == 1
        built = wallet.submissions[0].transaction
        assert isinstance(built, InstructionList)
        assert len(built.instructions) == 1
        params = decode_transfer(built.instructions[0])
        assert params["lamports"] == 1_000_000_000
        assert params["to_pubkey"] == Pubkey.from_string(RECIPIENT_ADDRESS)

        await asyncio.sleep(0.05)

        assert ledger.calls["get_native_balance"] == native_reads + 1
        assert connected.history[0] == result.signature

    @pytest.mark.asyncio
    async def test_transfer_over_balance(self, connected, wallet):
        result = await connected.send(TransferIntent(recipient=RECIPIENT_ADDRESS, amount="5.0"))

        assert not result.success
        assert not result.reset_form
        assert result.category == ErrorCategory.INSUFFICIENT_BALANCE
        assert "2.5000 SOL" in result.notice.body
        assert wallet.submissions == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-2", "abc", ""])
    async def test_invalid_amount_makes_no_external_call(self, connected, wallet, router, amount):
        router.get_quote = AsyncMock()

        send = await connected.send(TransferIntent(recipient=RECIPIENT_ADDRESS, amount=amount))
        swap = await connected.swap(SwapIntent(from_asset="SOL", to_asset="USDC", amount=amount))

        assert send.category == ErrorCategory.INVALID_AMOUNT
        assert swap.category == ErrorCategory.INVALID_AMOUNT
        router.get_quote.assert_not_awaited()
        assert wallet.submissions == []

    @pytest.mark.asyncio
    async def test_invalid_recipient(self, connected, wallet):
        result = await connected.send(TransferIntent(recipient="nope", amount="1"))

        assert result.category == ErrorCategory.INVALID_ADDRESS
        assert wallet.submissions == []

    @pytest.mark.asyncio
    async def test_signing_failure_keeps_state(self, connected, wallet):
        before = connected.snapshot
        wallet.sign_error = RuntimeError("Signing failed")

        result = await connected.send(TransferIntent(recipient=RECIPIENT_ADDRESS, amount="1"))

        assert result.category == ErrorCategory.SIGNING_FAILED
        assert "WebAuthn" in result.notice.body
        assert connected.snapshot == before
        assert connected.session.is_connected
        assert connected.pipeline.pending_resyncs == 0

    @pytest.mark.asyncio
    async def test_concurrent_submission_rejected(self, connected, wallet):
        release = asyncio.Event()
        original = wallet.sign_and_send

        async def slow_sign(transaction, options):
            await release.wait()
            return await original(transaction, options)

        wallet.sign_and_send = slow_sign
        intent = TransferIntent(recipient=RECIPIENT_ADDRESS, amount="0.1")

        first = asyncio.create_task(connected.send(intent))
        await asyncio.sleep(0)
        with pytest.raises(SubmissionInProgressError):
            await connected.send(intent)

        release.set()
        assert (await first).success
        assert len(wallet.submissions) == 1

    @pytest.mark.asyncio
    async def test_next_action_clears_notice(self, connected):
        await connected.send(TransferIntent(recipient="nope", amount="1"))
        assert connected.notice is not None

        connected.dismiss_feedback()
        assert connected.notice is None


class TestSwap:
    """Swap scenarios."""

    @pytest.mark.asyncio
    async def test_swap_forwards_raw_payload(self, connected, wallet):
        result = await connected.swap(SwapIntent(from_asset="SOL", to_asset="USDC", amount="1.0"))

        assert result.success
        assert isinstance(wallet.submissions[0].transaction, RawPayload)
        assert wallet.submissions[0].options.fee_asset == "USDC"

    @pytest.mark.asyncio
    async def test_no_route(self, connected, wallet, router):
        router.get_quote = AsyncMock(return_value=None)

        result = await connected.swap(SwapIntent(from_asset="SOL", to_asset="USDC", amount="1.0"))

        assert result.category == ErrorCategory.NO_ROUTE_AVAILABLE
        assert wallet.submissions == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"routePlan": [{}], "outAmount": "n/a"}),
        ],
    )
    async def test_malformed_aggregator_response_is_reported(
        self, settings, ledger, wallet, clock, response
    ):
        jupiter = JupiterAggregator(
            base_url="https://jup.test/v6",
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)),
        )
        orchestrator = WalletOrchestrator(settings, ledger, jupiter, wallet, clock=clock)
        await orchestrator.connect()

        result = await orchestrator.swap(SwapIntent(from_asset="SOL", to_asset="USDC", amount="1.0"))

        assert not result.success
        assert result.category == ErrorCategory.NETWORK_OR_LEDGER_ERROR
        assert orchestrator.notice.level == NoticeLevel.ERROR
        assert not orchestrator.pipeline.is_pending(IntentKind.SWAP)
        assert wallet.submissions == []
        await orchestrator.close()

    @pytest.mark.asyncio
    async def test_unexpected_build_failure_is_reported(self, connected, wallet, router):
        router.get_quote = AsyncMock(side_effect=KeyError("outAmount"))

        result = await connected.swap(SwapIntent(from_asset="SOL", to_asset="USDC", amount="1.0"))

        assert not result.success
        assert result.notice is not None
        assert wallet.submissions == []

    @pytest.mark.asyncio
    async def test_identical_assets_before_aggregator(self, connected, router):
        router.get_quote = AsyncMock()

        result = await connected.swap(SwapIntent(from_asset="SOL", to_asset="sol", amount="1"))

        assert result.category == ErrorCategory.IDENTICAL_ASSETS
        router.get_quote.assert_not_awaited()


class TestPayment:
    """Payment scenarios."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("asset,amount", [("SOL", "1"), ("USDC", "0"), ("USDC", "1000000")])
    async def test_no_merchant_configured(self, ledger, router, wallet, clock, asset, amount):
        orchestrator = WalletOrchestrator(
            make_settings(merchant_address=None), ledger, router, wallet, clock=clock
        )
        await orchestrator.connect()

        result = await orchestrator.pay(PaymentIntent(asset=asset, amount=amount))

        assert result.category == ErrorCategory.MERCHANT_NOT_CONFIGURED
        assert wallet.submissions == []
        assert orchestrator.state()["payments_enabled"] is False
        await orchestrator.disconnect()

    @pytest.mark.asyncio
    async def test_native_payment(self, connected, wallet):
        result = await connected.pay(PaymentIntent(asset="SOL", amount="0.5"))

        assert result.success
        assert decode_transfer(wallet.submissions[0].transaction.instructions[0])["lamports"] == 500_000_000


class TestRefresh:
    """User refresh through the orchestrator."""

    @pytest.mark.asyncio
    async def test_refresh_throttled_then_allowed(self, connected, clock):
        clock.advance(11)
        first = await connected.refresh()
        assert first.status == RefreshStatus.APPLIED
        assert connected.notice.title == "Balances refreshed"

        clock.advance(3)
        second = await connected.refresh()
        assert second.status == RefreshStatus.THROTTLED
        assert connected.notice.title == "Refresh throttled"
        assert "7s" in connected.notice.body

        clock.advance(11)
        third = await connected.refresh()
        assert third.status == RefreshStatus.APPLIED

    @pytest.mark.asyncio
    async def test_rate_limit_pauses_auto_refresh(self, connected, ledger, clock):
        ledger.fail("get_native_balance", RateLimitedError("429 Too Many Requests"))
        clock.advance(11)

        outcome = await connected.refresh()

        assert outcome.category == ErrorCategory.RATE_LIMITED
        assert connected.synchronizer.timer_state == TimerState.DISABLED_BY_RATE_LIMIT
        assert connected.notice.title == "Auto-refresh paused"
        assert connected.snapshot.native == Decimal("2.5")

        ledger.clear_failures()
        assert connected.enable_auto_refresh() is True
        assert connected.synchronizer.timer_state == TimerState.ENABLED

    @pytest.mark.asyncio
    async def test_reconnect_resets_breaker(self, connected):
        connected.synchronizer.disable_timer()

        await connected.disconnect()
        await connected.connect()

        assert connected.synchronizer.timer_state == TimerState.ENABLED

    @pytest.mark.asyncio
    async def test_periodic_timer_refreshes(self, ledger, router, wallet, clock, account):
        orchestrator = WalletOrchestrator(
            make_settings(refresh_interval_ms=20), ledger, router, wallet, clock=clock
        )
        await orchestrator.connect()
        reads = ledger.calls["get_native_balance"]

        clock.advance(11)
        await asyncio.sleep(0.1)

        assert ledger.calls["get_native_balance"] == reads + 1
        await orchestrator.disconnect()


class TestAirdrop:
    """Test-funds airdrop."""

    @pytest.mark.asyncio
    async def test_airdrop_success(self, connected, ledger):
        result = await connected.request_airdrop()

        assert result.success
        assert not result.reset_form
        assert "1 SOL" in connected.notice.body
        ledger_calls = ledger.calls
        assert ledger_calls["confirm_transaction"] == 1

        await asyncio.sleep(0.05)
        assert connected.snapshot.native == Decimal("3.5")

    @pytest.mark.asyncio
    async def test_airdrop_rate_limited(self, connected, ledger):
        ledger.fail("request_airdrop", RuntimeError("429 Too Many Requests"))

        result = await connected.request_airdrop()

        assert result.category == ErrorCategory.RATE_LIMITED
        assert result.notice.title == "Airdrop failed"
        assert "faucet.solana.com" in result.notice.body

    @pytest.mark.asyncio
    async def test_airdrop_timeout(self, connected, ledger):
        ledger.confirm_result = False

        result = await connected.request_airdrop()

        assert not result.success
        assert result.category == ErrorCategory.NETWORK_OR_LEDGER_ERROR

    @pytest.mark.asyncio
    async def test_airdrop_refused_on_mainnet(self, ledger, router, wallet, clock):
        orchestrator = WalletOrchestrator(
            make_settings(network="mainnet-beta"), ledger, router, wallet, clock=clock
        )
        await orchestrator.connect()

        result = await orchestrator.request_airdrop()

        assert not result.success
        assert ledger.calls["request_airdrop"] == 0
        await orchestrator.disconnect()
