"""Main entry point - serves the wallet API until SIGINT/SIGTERM."""

import asyncio
import logging
import signal
from typing import Optional

import uvicorn

from passkeyflow.api.app import create_app
from passkeyflow.config import Settings, get_settings

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class Application:
    """Hosts the wallet API server.

    A shutdown request asks uvicorn to exit instead of cancelling it, so the
    app lifespan still runs and the orchestrator disconnects and closes its
    HTTP clients.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.server: Optional[uvicorn.Server] = None

    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            create_app(self.settings),
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level="debug" if self.settings.debug else "info",
        )
        return uvicorn.Server(config)

    async def run(self):
        """Serve until shutdown is requested or the server stops on its own."""
        setup_logging(self.settings)
        logger.info(
            f"Starting Passkeyflow ({self.settings.environment}) on {self.settings.network}, "
            f"dry run: {self.settings.dry_run}"
        )
        if not self.settings.has_merchant:
            logger.warning("No merchant address configured, payments are disabled")

        self.server = self._build_server()
        logger.info(f"API listening on {self.settings.api_host}:{self.settings.api_port}")
        try:
            await self.server.serve()
        except Exception as e:
            logger.error(f"API server failed: {e}")
            raise
        logger.info("Shutdown complete")

    def shutdown(self):
        """Ask the server to finish in-flight requests and exit."""
        logger.info("Shutdown requested")
        if self.server is not None:
            self.server.should_exit = True


def main():
    """Main entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    app = Application()

    # Setup signal handlers
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.run())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
