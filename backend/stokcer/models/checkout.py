"""Checkout session model for MongoDB."""

from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, EmailStr, Field

from stokcer.utils.helpers import get_current_timestamp


class CheckoutStatus(str, Enum):
    """Checkout session status enumeration."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"


class CheckoutProvider(str, Enum):
    """Checkout provider enumeration."""
    MIDTRANS = "midtrans"
    STRIPE = "stripe"
    SIMULATION = "simulation"


class CheckoutUser(BaseModel):
    """Customer identity as supplied by the session provider."""
    id: str
    email: EmailStr
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class CheckoutPlan(BaseModel):
    """What is being paid for: a subscription plan or a cart snapshot."""
    id: str
    name: str
    price: float = Field(gt=0, allow_inf_nan=False)
    interval: Optional[str] = None  # "month" | "year"


class CheckoutSession(BaseModel):
    """
    Local record of a checkout started with a payment provider.

    The provider owns the authoritative status; this row mirrors it for
    display and audit and must never drive fulfillment.
    """
    id: Optional[str] = Field(None, alias="_id")
    order_id: str
    user_id: str

    # Payment Details
    amount: float = Field(gt=0, allow_inf_nan=False)
    currency: str = "IDR"
    provider: CheckoutProvider
    plan_id: str
    plan_name: str

    # Provider Information
    status: CheckoutStatus = CheckoutStatus.PENDING
    provider_token: str
    redirect_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # Audit
    created_at: datetime = Field(default_factory=get_current_timestamp)
    updated_at: datetime = Field(default_factory=get_current_timestamp)

    class Config:
        populate_by_name = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "order_id": "SUB-5f8d0d55-1735517531000",
                "user_id": "5f8d0d55b54764421b7156c9",
                "amount": 350000,
                "currency": "IDR",
                "provider": "midtrans",
                "plan_id": "premium-yearly",
                "plan_name": "Premium Tahunan",
                "status": "pending",
                "provider_token": "66e4fa55-fdac-4ef9-91b5-733b97d1b862",
                "metadata": {"plan_id": "premium-yearly", "plan_name": "Premium Tahunan"}
            }
        }


class CheckoutSessionResult(BaseModel):
    """What the client needs to launch the provider UI."""
    token: str
    order_id: str
    provider: str
    redirect_url: Optional[str] = None
