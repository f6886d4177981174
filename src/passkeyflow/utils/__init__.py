"""Utility modules for passkeyflow."""

from passkeyflow.utils.locks import PendingRegistry

__all__ = ["PendingRegistry"]
