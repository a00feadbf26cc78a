"""
Reconciliation service - mirrors provider-reported payment status into the
local checkout session rows.

Updates are keyed by order id and idempotent. This service only records what
the provider says; it never grants anything.
"""

import logging
from typing import Any, Dict, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from stokcer.core.exceptions import ReconciliationError
from stokcer.models.checkout import CheckoutStatus
from stokcer.services.notification_service import NotificationService
from stokcer.services.payment_providers.registry import get_payment_provider
from stokcer.utils.helpers import get_current_timestamp

logger = logging.getLogger(__name__)

# Provider status vocabulary (Midtrans transaction_status, Snap callbacks, Stripe session/payment status)
STATUS_MAP = {
    "capture": CheckoutStatus.PAID,
    "settlement": CheckoutStatus.PAID,
    "success": CheckoutStatus.PAID,
    "paid": CheckoutStatus.PAID,
    "complete": CheckoutStatus.PAID,
    "pending": CheckoutStatus.PENDING,
    "authorize": CheckoutStatus.PENDING,
    "open": CheckoutStatus.PENDING,
    "unpaid": CheckoutStatus.PENDING,
    "deny": CheckoutStatus.FAILED,
    "cancel": CheckoutStatus.FAILED,
    "failure": CheckoutStatus.FAILED,
    "failed": CheckoutStatus.FAILED,
    "expire": CheckoutStatus.EXPIRED,
    "expired": CheckoutStatus.EXPIRED,
}

STATUS_NOTIFICATIONS = {
    CheckoutStatus.PAID: ("success", "Payment confirmed", "Your payment for {plan} has been confirmed."),
    CheckoutStatus.FAILED: ("error", "Payment failed", "The payment for {plan} could not be completed."),
    CheckoutStatus.EXPIRED: ("warning", "Payment expired", "The payment for {plan} expired before completion."),
}


def normalize_status(status: Union[str, CheckoutStatus]) -> CheckoutStatus:
    """
    Map a provider status to a checkout status.

    Raises:
        ValueError: Unknown status
    """
    if isinstance(status, CheckoutStatus):
        return status
    normalized = STATUS_MAP.get(str(status).strip().lower())
    if normalized is None:
        raise ValueError(f"Unknown payment status: {status}")
    return normalized


class ReconciliationService:
    """Keeps local checkout sessions in step with the provider."""

    def __init__(self, db: AsyncIOMotorDatabase, provider=None):
        self.db = db
        self.provider = provider

    async def update_status(
        self,
        order_id: str,
        status: Union[str, CheckoutStatus],
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Overwrite status and metadata of the session for order_id.

        Safe to call repeatedly with the same status; the audit notification
        is only written when the status actually changes.

        Returns:
            True if a session was updated, False if none exists or the write failed

        Raises:
            ValueError: Unknown status
        """
        new_status = normalize_status(status)

        try:
            previous = await self._write(order_id, new_status, metadata or {})
        except ReconciliationError as e:
            logger.error(str(e))
            return False

        if previous is None:
            logger.warning(f"No checkout session found for order {order_id}")
            return False

        if previous.get("status") != new_status.value:
            logger.info(f"Checkout {order_id}: {previous.get('status')} -> {new_status.value}")
            notification = STATUS_NOTIFICATIONS.get(new_status)
            if notification:
                type_, title, message = notification
                await NotificationService.log_notification(
                    previous.get("user_id"),
                    title,
                    message.format(plan=previous.get("plan_name", "your order")),
                    self.db,
                    type=type_,
                    metadata={"order_id": order_id}
                )

        return True

    async def _write(self, order_id: str, status: CheckoutStatus, metadata: Dict[str, Any]) -> Optional[dict]:
        try:
            return await self.db.checkout_sessions.find_one_and_update(
                {"order_id": order_id},
                {
                    "$set": {
                        "status": status.value,
                        "metadata": metadata,
                        "updated_at": get_current_timestamp()
                    }
                },
                projection={"status": 1, "user_id": 1, "plan_name": 1},
                return_document=ReturnDocument.BEFORE
            )
        except PyMongoError as e:
            raise ReconciliationError(order_id, str(e)) from e

    async def reconcile(self, order_id: str) -> Optional[str]:
        """
        Poll the provider for an order and mirror the answer locally.

        Returns:
            The reconciled status, or None if the session is unknown, the
            provider could not answer, or the local write failed
        """
        try:
            session = await self.db.checkout_sessions.find_one({"order_id": order_id})
        except PyMongoError as e:
            logger.error(str(ReconciliationError(order_id, str(e))))
            return None

        if not session:
            logger.warning(f"Cannot reconcile unknown order {order_id}")
            return None

        provider = self.provider or get_payment_provider(session.get("provider"))
        result = await provider.check_transaction_status(order_id, session.get("provider_token"))

        if not result.get("success"):
            logger.warning(f"Provider could not report status for {order_id}: {result.get('message')}")
            return None

        try:
            status = normalize_status(result.get("status", ""))
        except ValueError:
            logger.warning(f"Provider reported unknown status '{result.get('status')}' for {order_id}")
            return None

        metadata = {**session.get("metadata", {}), "provider_status": result.get("data", {}), "source": "poll"}
        if not await self.update_status(order_id, status, metadata):
            return None

        return status.value
