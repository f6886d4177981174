"""HTTP host for the wallet orchestrator."""

from passkeyflow.api.app import create_app

__all__ = ["create_app"]
