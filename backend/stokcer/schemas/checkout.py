"""Checkout schemas for API request/response validation."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class SubscriptionCheckoutRequest(BaseModel):
    """Schema for starting a subscription checkout."""
    plan_id: str
    provider: Optional[str] = None  # "midtrans" | "stripe"
    mode: Literal["subscription", "payment"] = "subscription"
    currency: Optional[str] = None
    return_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": "premium-yearly",
                "provider": "midtrans"
            }
        }


class CartCheckoutRequest(BaseModel):
    """Schema for paying for the current cart."""
    provider: Optional[str] = None
    currency: Optional[str] = None
    return_url: Optional[str] = None


class CheckoutSessionResponse(BaseModel):
    """Schema for checkout session creation response."""
    token: str
    order_id: str
    provider: str
    redirect_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "token": "66e4fa55-fdac-4ef9-91b5-733b97d1b862",
                "order_id": "SUB-5f8d0d55-1735517531000",
                "provider": "midtrans",
                "redirect_url": "https://app.sandbox.midtrans.com/snap/v4/redirection/66e4fa55"
            }
        }


class StatusUpdateRequest(BaseModel):
    """Provider result reported by the client (e.g. Snap onSuccess/onPending/onError)."""
    status: str
    metadata: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "status": "success",
                "metadata": {"transaction_status": "settlement", "payment_type": "qris"}
            }
        }


class StatusUpdateResponse(BaseModel):
    order_id: str
    status: str
    cart_cleared: bool = False


class SimulateResultRequest(BaseModel):
    """Provider-side status to report for a simulated order."""
    status: Literal["settlement", "pending", "deny", "expire"] = "settlement"


class CheckoutHistoryItem(BaseModel):
    """Schema for checkout history item."""
    order_id: str
    amount: float
    currency: str
    provider: str
    plan_name: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class CheckoutHistoryResponse(BaseModel):
    """Schema for checkout history response."""
    sessions: List[CheckoutHistoryItem]
    total: int
    limit: int
    offset: int
