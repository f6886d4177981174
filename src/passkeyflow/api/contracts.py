"""Request and response contracts for the wallet API.

Amounts travel as the strings the user typed; parsing and conversion
happen in the validator so failures are classified like any other.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ConnectRequest(BaseModel):
    """Options for connecting the smart wallet."""

    fee_mode: Optional[str] = Field(None, description="Fee mode (defaults to configured mode)")


class SendRequest(BaseModel):
    """Send native asset to a recipient."""

    recipient: str = Field(..., description="Recipient address")
    amount: str = Field(..., description="Amount as entered by the user")


class SwapRequest(BaseModel):
    """Swap between the native asset and the configured token."""

    from_asset: str = Field(..., description="Asset to sell")
    to_asset: str = Field(..., description="Asset to buy")
    amount: str = Field(..., description="Amount of from_asset as entered by the user")


class PayRequest(BaseModel):
    """Pay the configured merchant."""

    asset: str = Field(..., description="Asset to pay with")
    amount: str = Field(..., description="Amount as entered by the user")


class NoticeResponse(BaseModel):
    level: str
    title: str
    body: str
    category: Optional[str] = None
    created_at: Optional[str] = None


class OperationResponse(BaseModel):
    """Outcome of a wallet operation."""

    operation: str
    success: bool
    signature: Optional[str] = None
    category: Optional[str] = None
    notice: Optional[NoticeResponse] = None
    reset_form: bool = Field(default=False, description="Whether the host should clear the form")


class RefreshResponse(BaseModel):
    status: str
    trigger: str
    category: Optional[str] = None
    retry_after_ms: int = 0
    notice: Optional[NoticeResponse] = None


class AutoRefreshResponse(BaseModel):
    running: bool
    state: str


class FeedbackResponse(BaseModel):
    notice: Optional[NoticeResponse] = None
