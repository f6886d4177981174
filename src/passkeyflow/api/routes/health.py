"""Health check endpoints."""

from fastapi import APIRouter, Request

from passkeyflow import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "passkeyflow"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration and capability info."""
    orchestrator = request.app.state.orchestrator
    return {
        "status": "healthy",
        "service": "passkeyflow",
        "version": __version__,
        "session": orchestrator.session.status.value,
        "capabilities": {
            "ledger": orchestrator.ledger.name,
            "aggregator": orchestrator.aggregator.name,
            "wallet": orchestrator.connector.name,
        },
        "config": orchestrator.settings.get_safe_dict(),
    }
