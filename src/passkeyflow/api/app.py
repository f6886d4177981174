"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from passkeyflow import __version__
from passkeyflow.config import Settings, get_settings
from passkeyflow.errors import SessionInactiveError, SubmissionInProgressError
from passkeyflow.orchestrator import WalletOrchestrator
from passkeyflow.signing.base import WalletConnector

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Wallet orchestrator ready")
    yield
    # Shutdown
    await app.state.orchestrator.close()


def create_app(
    settings: Optional[Settings] = None,
    connector: Optional[WalletConnector] = None,
    orchestrator: Optional[WalletOrchestrator] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings (defaults to environment)
        connector: Passkey wallet connector (required outside dry-run)
        orchestrator: Pre-built orchestrator (tests)
    """
    settings = settings or get_settings()
    if orchestrator is None:
        orchestrator = WalletOrchestrator.from_settings(settings, connector)

    app = FastAPI(
        title="Passkeyflow API",
        description="Passkey smart-wallet session and transaction orchestrator",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.orchestrator = orchestrator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SessionInactiveError)
    async def session_inactive_handler(request: Request, exc: SessionInactiveError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": str(exc)},
        )

    @app.exception_handler(SubmissionInProgressError)
    async def submission_pending_handler(request: Request, exc: SubmissionInProgressError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "pending": exc.kind},
        )

    # Register routes
    from passkeyflow.api.routes import health, wallet

    app.include_router(health.router, tags=["Health"])
    app.include_router(wallet.session_router)
    app.include_router(wallet.router)

    return app
