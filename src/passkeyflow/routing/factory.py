"""Factory for creating the swap aggregator.

Creates the real Jupiter client unless running in dry-run mode.
"""

import logging

from passkeyflow.assets import AssetRegistry
from passkeyflow.config import Settings
from passkeyflow.routing.base import AggregatorProvider

logger = logging.getLogger(__name__)


def create_aggregator(settings: Settings, assets: AssetRegistry) -> AggregatorProvider:
    """Create the configured aggregator provider."""
    if not settings.dry_run:
        from passkeyflow.routing.jupiter import JupiterAggregator

        logger.info(f"Using Jupiter aggregator at {settings.aggregator_url}")
        return JupiterAggregator(
            base_url=settings.aggregator_url,
            api_key=settings.aggregator_api_key,
            timeout=settings.aggregator_timeout_seconds,
        )

    from passkeyflow.routing.dry_run import SimulatedJupiterRouter

    logger.info("Using simulated Jupiter router")
    return SimulatedJupiterRouter(assets)
