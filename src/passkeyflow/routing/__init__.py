"""Swap routing through a price aggregator.

Providers:
- Jupiter: Solana DEX aggregator (quote + serialized swap transaction)
- SimulatedJupiterRouter: fixed-price stand-in for dry-run mode
"""

from passkeyflow.routing.base import AggregatorProvider, SwapQuote
from passkeyflow.routing.dry_run import SimulatedJupiterRouter
from passkeyflow.routing.factory import create_aggregator
from passkeyflow.routing.jupiter import JupiterAggregator

__all__ = [
    "AggregatorProvider",
    "SwapQuote",
    "JupiterAggregator",
    "SimulatedJupiterRouter",
    "create_aggregator",
]
