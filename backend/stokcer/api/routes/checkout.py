"""
Checkout API routes.

Handles checkout session creation, client-reported results, status polling
and history.
"""

import asyncio
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from stokcer.api.deps import (
    build_cart_service,
    get_cart_service,
    get_current_user,
    get_db,
    get_optional_device_id,
    to_checkout_user
)
from stokcer.config.payment_config import PAYMENT_MODE
from stokcer.core.config import settings
from stokcer.core.exceptions import PaymentInitError
from stokcer.models.checkout import CheckoutStatus
from stokcer.schemas.checkout import (
    CartCheckoutRequest,
    CheckoutHistoryResponse,
    CheckoutSessionResponse,
    SimulateResultRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
    SubscriptionCheckoutRequest
)
from stokcer.services.cart_service import CartService
from stokcer.services.catalog_service import CatalogService
from stokcer.services.checkout_service import CheckoutService
from stokcer.services.payment_providers.registry import get_payment_provider
from stokcer.services.payment_providers.simulation_service import SimulationService
from stokcer.services.reconciliation_service import ReconciliationService, normalize_status

logger = logging.getLogger(__name__)

router = APIRouter()


def _provider_or_400(name: Optional[str]):
    try:
        return get_payment_provider(name)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


async def _with_timeout(coro):
    """Apply the HTTP-layer deadline to a checkout call and map its errors."""
    try:
        return await asyncio.wait_for(coro, timeout=settings.CHECKOUT_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.error("Checkout session creation timed out")
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Payment provider did not respond in time. Please try again."
        )
    except PaymentInitError as e:
        logger.warning(f"Payment initialization failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=e.message or "Could not start payment process. Please try again."
        )


async def _owned_session(order_id: str, user: dict, db: AsyncIOMotorDatabase) -> dict:
    session = await db.checkout_sessions.find_one({"order_id": order_id})

    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Checkout session not found"
        )

    if session["user_id"] != str(user["_id"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own checkout sessions"
        )

    return session


@router.post("/subscription", response_model=CheckoutSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_subscription_checkout(
    request: SubscriptionCheckoutRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Start a checkout for a subscription plan.

    **Returns:**
    - Snap token (Midtrans) or checkout session id (Stripe)
    - Order ID for tracking
    - Redirect URL of the hosted payment page
    """
    plan = await CatalogService.get_plan(request.plan_id, db)
    provider = _provider_or_400(request.provider)

    service = CheckoutService(provider, db)
    result = await _with_timeout(service.create_session(
        to_checkout_user(current_user),
        plan,
        mode=request.mode,
        currency=request.currency,
        return_url=request.return_url
    ))

    return CheckoutSessionResponse(**result.model_dump())


@router.post("/cart", response_model=CheckoutSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_cart_checkout(
    request: CartCheckoutRequest,
    cart: CartService = Depends(get_cart_service),
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Start a one-off payment for the contents of the device cart.

    The cart is kept until the payment is reported as paid.
    """
    if cart.count() == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cart is empty"
        )

    provider = _provider_or_400(request.provider)

    service = CheckoutService(provider, db)
    result = await _with_timeout(service.create_cart_session(
        to_checkout_user(current_user),
        cart,
        currency=request.currency,
        return_url=request.return_url
    ))

    return CheckoutSessionResponse(**result.model_dump())


@router.post("/{order_id}/status", response_model=StatusUpdateResponse)
async def report_checkout_status(
    order_id: str,
    request: StatusUpdateRequest,
    device_id: Optional[str] = Depends(get_optional_device_id),
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Record a provider result reported by the client.

    Mirrors the status for display only. When the payment is reported paid
    and the request names a device, that device's cart is cleared.
    """
    await _owned_session(order_id, current_user, db)

    try:
        new_status = normalize_status(request.status)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    reconciler = ReconciliationService(db)
    updated = await reconciler.update_status(order_id, new_status, request.metadata)
    if not updated:
        logger.warning(f"Local status for {order_id} may lag the provider until the next reconciliation")

    cart_cleared = False
    if new_status == CheckoutStatus.PAID and device_id:
        build_cart_service(device_id).clear()
        cart_cleared = True

    return StatusUpdateResponse(order_id=order_id, status=new_status.value, cart_cleared=cart_cleared)


@router.post("/{order_id}/reconcile", response_model=StatusUpdateResponse)
async def reconcile_checkout(
    order_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Ask the payment provider for the current status and store it locally.
    """
    session = await _owned_session(order_id, current_user, db)

    reconciler = ReconciliationService(db)
    reconciled = await reconciler.reconcile(order_id)

    # Fall back to the cached status when the provider could not be reached
    return StatusUpdateResponse(order_id=order_id, status=reconciled or session["status"])


@router.get("/history", response_model=CheckoutHistoryResponse)
async def get_checkout_history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Get the checkout sessions of the current user, newest first.
    """
    service = CheckoutService(None, db)
    return await service.get_history(str(current_user["_id"]), limit=limit, offset=offset)


# Admin endpoint for testing in SIMULATION mode

@router.post("/admin/{order_id}/simulate", response_model=StatusUpdateResponse)
async def simulate_checkout_result(
    order_id: str,
    request: SimulateResultRequest,
    current_user: dict = Depends(get_current_user)
):
    """
    Set what the simulated provider reports for an order (SIMULATION mode only).

    The local session is not touched; call reconcile to pick the status up.
    """
    if PAYMENT_MODE != "SIMULATION":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This endpoint is only available in SIMULATION mode"
        )

    if not SimulationService.simulate_result(order_id, request.status):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Simulated order not found"
        )

    return StatusUpdateResponse(order_id=order_id, status=normalize_status(request.status).value)
