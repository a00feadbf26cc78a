"""
Checkout service - starts payment sessions with a provider and records them.

The provider is the source of truth for payment status. The row written here
is a local cache that the reconciliation service keeps in step.
"""

import logging
from typing import Any, Dict, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from stokcer.config.payment_config import PAYMENT_CONFIG
from stokcer.core.config import settings
from stokcer.core.exceptions import PaymentInitError
from stokcer.models.checkout import CheckoutPlan, CheckoutSession, CheckoutSessionResult, CheckoutUser
from stokcer.services.cart_service import CartService
from stokcer.services.notification_service import NotificationService
from stokcer.utils.helpers import format_document, generate_order_id
from stokcer.utils.money import to_float

logger = logging.getLogger(__name__)

CART_ORDER_PREFIX = "ORD"


class CheckoutService:
    """Checkout session orchestration for one provider."""

    def __init__(self, provider, db: AsyncIOMotorDatabase):
        self.provider = provider
        self.db = db

    @staticmethod
    def build_customer_details(user: CheckoutUser) -> Dict[str, Any]:
        """Customer block sent to the provider, with defaults for missing profile fields."""
        defaults = PAYMENT_CONFIG["customer_defaults"]
        return {
            "first_name": user.first_name or defaults["first_name"],
            "last_name": user.last_name or defaults["last_name"],
            "email": user.email,
            "phone": user.phone or defaults["phone"]
        }

    async def create_session(
        self,
        user: Union[CheckoutUser, dict],
        plan: Union[CheckoutPlan, dict],
        mode: str = "subscription",
        currency: Optional[str] = None,
        return_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        order_prefix: Optional[str] = None
    ) -> CheckoutSessionResult:
        """
        Create a provider checkout session for a plan.

        Args:
            user: Paying user
            plan: Plan (id, name, price, interval)
            mode: "subscription" or "payment"; used by redirect-style providers
            currency: Currency code; defaults to the provider/app default
            return_url: Where the hosted checkout returns on success
            metadata: Extra fields stored on the local session row
            order_prefix: Order ID prefix, "SUB" unless overridden

        Returns:
            Token (or session id) and order id for launching the provider UI

        Raises:
            PaymentInitError: The provider failed or returned no token. Nothing
                is written locally in that case.
        """
        user = user if isinstance(user, CheckoutUser) else CheckoutUser.model_validate(user)
        plan = plan if isinstance(plan, CheckoutPlan) else CheckoutPlan.model_validate(plan)

        order_id = generate_order_id(user.id, order_prefix or PAYMENT_CONFIG["order_id_prefix"])
        currency = (currency or getattr(self.provider, "default_currency", None) or settings.DEFAULT_CURRENCY).upper()

        logger.info(f"Starting {self.provider.name} checkout {order_id} for user {user.id}, amount {plan.price} {currency}")

        try:
            response = await self.provider.create_transaction(
                order_id=order_id,
                amount=plan.price,
                plan_id=plan.id,
                plan_name=plan.name,
                customer_details=self.build_customer_details(user),
                mode=mode,
                currency=currency,
                interval=plan.interval,
                return_url=return_url,
                user_id=user.id
            )
        except Exception as e:
            logger.error(f"Provider {self.provider.name} raised while creating {order_id}: {str(e)}")
            raise PaymentInitError(f"Failed to initialize payment: {str(e)}", self.provider.name) from e

        if not response.get("success"):
            raise PaymentInitError(response.get("message") or "Failed to initialize payment", self.provider.name)

        token = response.get("token") or response.get("session_id")
        if not token:
            raise PaymentInitError("No payment token received", self.provider.name)

        redirect_url = response.get("redirect_url") or response.get("url")

        session = CheckoutSession(
            order_id=order_id,
            user_id=user.id,
            amount=plan.price,
            currency=currency,
            provider=self.provider.name,
            plan_id=plan.id,
            plan_name=plan.name,
            provider_token=token,
            redirect_url=redirect_url,
            metadata={"plan_id": plan.id, "plan_name": plan.name, "mode": mode, **(metadata or {})}
        )
        await self._record_session(session)

        await NotificationService.log_notification(
            user.id,
            "Checkout started",
            f"Payment for {plan.name} is waiting for confirmation.",
            self.db,
            type="info",
            metadata={"order_id": order_id, "provider": self.provider.name}
        )

        return CheckoutSessionResult(
            token=token,
            order_id=order_id,
            provider=self.provider.name,
            redirect_url=redirect_url
        )

    async def create_cart_session(
        self,
        user: Union[CheckoutUser, dict],
        cart: CartService,
        currency: Optional[str] = None,
        return_url: Optional[str] = None
    ) -> CheckoutSessionResult:
        """
        Create a one-off payment session for the current cart contents.

        Raises:
            ValueError: The cart is empty
            PaymentInitError: See create_session
        """
        count = cart.count()
        if count == 0:
            raise ValueError("Cart is empty")

        plan = CheckoutPlan(
            id=f"cart-{count}",
            name=f"Stokcer order ({count} items)",
            price=to_float(cart.subtotal())
        )
        items = [
            {
                "product_id": item.product.id,
                "variant_id": item.variant_id,
                "quantity": item.quantity,
                "price": item.variant.price
            }
            for item in cart.items
        ]

        return await self.create_session(
            user,
            plan,
            mode="payment",
            currency=currency or cart.currency,
            return_url=return_url,
            metadata={"items": items},
            order_prefix=CART_ORDER_PREFIX
        )

    async def _record_session(self, session: CheckoutSession) -> None:
        """Insert the pending row; a failure is logged and checkout continues."""
        try:
            await self.db.checkout_sessions.insert_one(session.model_dump(by_alias=True, exclude={"id"}))
            logger.info(f"Recorded pending checkout session {session.order_id}")
        except PyMongoError as e:
            logger.error(f"Failed to log checkout session {session.order_id}: {str(e)}")

    async def get_history(self, user_id: str, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        """Checkout sessions of a user, newest first."""
        query = {"user_id": user_id}

        total = await self.db.checkout_sessions.count_documents(query)
        sessions = await self.db.checkout_sessions.find(query).sort("created_at", -1).skip(offset).limit(limit).to_list(length=limit)

        return {
            "sessions": [format_document(session) for session in sessions],
            "total": total,
            "limit": limit,
            "offset": offset
        }
