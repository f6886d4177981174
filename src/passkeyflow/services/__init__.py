"""Orchestration services: validation, building, submission and sync."""

from passkeyflow.services.balance_sync import (
    BalanceSynchronizer,
    RefreshGate,
    RefreshOutcome,
    RefreshStatus,
    RefreshTrigger,
    TimerState,
)
from passkeyflow.services.error_classifier import (
    FeedbackState,
    Notice,
    NoticeLevel,
    build_error_notice,
    classify,
    classify_message,
)
from passkeyflow.services.submission import SubmissionPipeline, SubmissionResult
from passkeyflow.services.transaction_builder import TransactionBuilder
from passkeyflow.services.validator import IntentValidator, convert_amount, validate_address

__all__ = [
    "BalanceSynchronizer",
    "RefreshGate",
    "RefreshOutcome",
    "RefreshStatus",
    "RefreshTrigger",
    "TimerState",
    "FeedbackState",
    "Notice",
    "NoticeLevel",
    "build_error_notice",
    "classify",
    "classify_message",
    "SubmissionPipeline",
    "SubmissionResult",
    "TransactionBuilder",
    "IntentValidator",
    "convert_amount",
    "validate_address",
]
