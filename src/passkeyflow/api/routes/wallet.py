"""Session and wallet endpoints.

Every endpoint that needs a connected wallet answers 401 while the session
is disconnected, and 409 while the same form is still pending.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from passkeyflow.api.contracts import (
    AutoRefreshResponse,
    ConnectRequest,
    FeedbackResponse,
    OperationResponse,
    PayRequest,
    RefreshResponse,
    SendRequest,
    SwapRequest,
)
from passkeyflow.models import PaymentIntent, SwapIntent, TransferIntent
from passkeyflow.orchestrator import WalletOrchestrator
from passkeyflow.signing.base import ConnectOptions

session_router = APIRouter(prefix="/session", tags=["session"])
router = APIRouter(tags=["wallet"])


def get_orchestrator(request: Request) -> WalletOrchestrator:
    return request.app.state.orchestrator


@session_router.post("/connect", response_model=OperationResponse)
async def connect(
    body: Optional[ConnectRequest] = None,
    orchestrator: WalletOrchestrator = Depends(get_orchestrator),
):
    """Connect the passkey smart wallet and load balances."""
    options = None
    if body is not None and body.fee_mode:
        options = ConnectOptions(fee_mode=body.fee_mode)
    result = await orchestrator.connect(options)
    return result.to_dict()


@session_router.post("/disconnect")
async def disconnect(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    """Disconnect and drop all session state."""
    await orchestrator.disconnect()
    return {"success": True, "session": orchestrator.session.status.value}


@router.get("/wallet")
async def wallet_state(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    """Session, balances, recent transactions and current notice."""
    orchestrator.session.require_account("wallet view")
    return orchestrator.state()


@router.post("/wallet/refresh", response_model=RefreshResponse)
async def refresh(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    """User-initiated refresh (subject to the cooldown)."""
    outcome = await orchestrator.refresh()
    notice = orchestrator.notice
    return {
        "status": outcome.status.value,
        "trigger": outcome.trigger.value,
        "category": outcome.category.value if outcome.category else None,
        "retry_after_ms": outcome.retry_after_ms,
        "notice": notice.to_dict() if notice else None,
    }


@router.post("/wallet/auto-refresh", response_model=AutoRefreshResponse)
async def enable_auto_refresh(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    """Re-enable periodic refresh after rate limiting paused it."""
    running = orchestrator.enable_auto_refresh()
    return {"running": running, "state": orchestrator.synchronizer.timer_state.value}


@router.post("/wallet/send", response_model=OperationResponse)
async def send(body: SendRequest, orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    result = await orchestrator.send(TransferIntent(recipient=body.recipient, amount=body.amount))
    return result.to_dict()


@router.post("/wallet/swap", response_model=OperationResponse)
async def swap(body: SwapRequest, orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    result = await orchestrator.swap(
        SwapIntent(from_asset=body.from_asset, to_asset=body.to_asset, amount=body.amount)
    )
    return result.to_dict()


@router.post("/wallet/pay", response_model=OperationResponse)
async def pay(body: PayRequest, orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    result = await orchestrator.pay(PaymentIntent(asset=body.asset, amount=body.amount))
    return result.to_dict()


@router.post("/wallet/airdrop", response_model=OperationResponse)
async def airdrop(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    """Request test funds (devnet/testnet only)."""
    result = await orchestrator.request_airdrop()
    return result.to_dict()


@router.get("/feedback", response_model=FeedbackResponse)
async def get_feedback(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    notice = orchestrator.notice
    return {"notice": notice.to_dict() if notice else None}


@router.delete("/feedback", response_model=FeedbackResponse)
async def dismiss_feedback(orchestrator: WalletOrchestrator = Depends(get_orchestrator)):
    orchestrator.dismiss_feedback()
    return {"notice": None}
