"""Tests for failure classification and feedback state."""

import pytest

from passkeyflow.errors import (
    AggregatorError,
    ErrorCategory,
    IdenticalAssetsError,
    InvalidAmountError,
    NoRouteAvailableError,
    RateLimitedError,
)
from passkeyflow.services.error_classifier import (
    FAUCET_URL,
    FeedbackState,
    NoticeLevel,
    build_error_notice,
    classify,
    classify_message,
)


class TestClassifyMessage:
    """Tests for keyword classification."""

    @pytest.mark.parametrize(
        "message,category",
        [
            ("Signing failed: WebAuthn not supported", ErrorCategory.SIGNING_FAILED),
            ("User rejected the request", ErrorCategory.USER_CANCELLED),
            ("Insufficient funds for rent", ErrorCategory.INSUFFICIENT_BALANCE),
            ("Invalid recipient address format", ErrorCategory.INVALID_ADDRESS),
            ("Invalid amount", ErrorCategory.INVALID_AMOUNT),
            ("429 Too Many Requests", ErrorCategory.RATE_LIMITED),
            ("airdrop request limit reached", ErrorCategory.RATE_LIMITED),
            ("blockhash not found", ErrorCategory.NETWORK_OR_LEDGER_ERROR),
            ("", ErrorCategory.NETWORK_OR_LEDGER_ERROR),
        ],
    )
    def test_categories(self, message, category):
        assert classify_message(message) == category

    def test_signing_beats_cancellation(self):
        assert classify_message("Signing failed: user rejected") == ErrorCategory.SIGNING_FAILED

    def test_cancellation_beats_insufficient(self):
        message = "User rejected: insufficient balance warning"
        assert classify_message(message) == ErrorCategory.USER_CANCELLED

    def test_insufficient_beats_invalid(self):
        message = "Invalid transaction: insufficient lamports"
        assert classify_message(message) == ErrorCategory.INSUFFICIENT_BALANCE

    def test_invalid_beats_rate_limit(self):
        assert classify_message("invalid request (429)") == ErrorCategory.INVALID_AMOUNT


class TestClassify:
    def test_typed_error_skips_keyword_scan(self):
        assert classify(NoRouteAvailableError("nothing here")) == ErrorCategory.NO_ROUTE_AVAILABLE
        assert classify(IdenticalAssetsError("x")) == ErrorCategory.IDENTICAL_ASSETS

    def test_generic_wallet_error_is_scanned(self):
        error = AggregatorError("Jupiter returned: rate limit exceeded")
        assert classify(error) == ErrorCategory.RATE_LIMITED

    def test_plain_exception(self):
        assert classify(RuntimeError("User cancelled")) == ErrorCategory.USER_CANCELLED

    def test_local_categories(self):
        assert ErrorCategory.INVALID_ADDRESS.is_local
        assert ErrorCategory.MERCHANT_NOT_CONFIGURED.is_local
        assert not ErrorCategory.NO_ROUTE_AVAILABLE.is_local


class TestNotices:
    """Tests for notice text."""

    def test_validation_message_is_body(self):
        notice = build_error_notice(ErrorCategory.INSUFFICIENT_BALANCE, "You have 2.5000 SOL")

        assert notice.level == NoticeLevel.ERROR
        assert notice.body == "You have 2.5000 SOL"

    def test_signing_hint(self):
        notice = build_error_notice(ErrorCategory.SIGNING_FAILED, "raw")

        assert "HTTPS" in notice.body
        assert "WebAuthn" in notice.body

    def test_generic_error_includes_message(self):
        notice = build_error_notice(ErrorCategory.NETWORK_OR_LEDGER_ERROR, "node down")
        assert notice.body.endswith("node down")

    def test_airdrop_rate_limit_points_to_faucet(self):
        notice = build_error_notice(ErrorCategory.RATE_LIMITED, "429", operation="airdrop")

        assert notice.title == "Airdrop failed"
        assert FAUCET_URL in notice.body

    def test_every_category_has_text(self):
        for category in ErrorCategory:
            notice = build_error_notice(category)
            assert notice.title
            assert notice.body


class TestFeedbackState:
    def test_report_and_clear(self):
        feedback = FeedbackState()

        notice = feedback.report_error(InvalidAmountError("Amount must be greater than 0"))

        assert feedback.current is notice
        assert notice.category == ErrorCategory.INVALID_AMOUNT
        assert notice.body == "Amount must be greater than 0"

        feedback.clear()
        assert feedback.current is None

    def test_success_replaces_error(self):
        feedback = FeedbackState()
        feedback.report_error(RateLimitedError("429"))

        feedback.report_success("Balances refreshed")

        assert feedback.current.level == NoticeLevel.SUCCESS
        assert feedback.current.category is None

    def test_to_dict(self):
        feedback = FeedbackState()
        data = feedback.report_error("User rejected the request").to_dict()

        assert data["level"] == "error"
        assert data["category"] == "user_cancelled"
        assert data["created_at"] is not None
