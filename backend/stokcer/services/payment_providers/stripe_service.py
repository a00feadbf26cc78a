"""
Stripe Checkout service.

Documentation: https://docs.stripe.com/api/checkout/sessions
"""

import logging
from typing import Dict, Any, Optional

import requests
from fastapi.concurrency import run_in_threadpool

from stokcer.config.payment_config import PAYMENT_CONFIG, get_provider_config, get_provider_url
from stokcer.core.config import settings
from stokcer.utils.money import to_minor_units

logger = logging.getLogger(__name__)

YEARLY_INTERVALS = {"year", "tahun", "yearly"}


class StripeService:
    """Stripe hosted checkout (redirect-style)."""

    name = "stripe"

    def __init__(self):
        self.config = get_provider_config("stripe")
        self.base_url = get_provider_url("stripe")
        self.secret_key = self.config.get("secret_key", "")
        self.default_currency = self.config.get("currency", "usd")
        self.timeout = PAYMENT_CONFIG["http_timeout_seconds"]

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.secret_key}"}

    def _return_urls(self, return_url: Optional[str]) -> Dict[str, str]:
        success_url = return_url or f"{settings.BASE_URL}{self.config['success_path']}"
        cancel_url = success_url.replace(self.config["success_path"], self.config["cancel_path"])
        return {
            "success_url": f"{success_url}?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": cancel_url
        }

    async def create_transaction(
        self,
        order_id: str,
        amount: float,
        plan_id: str,
        plan_name: str,
        customer_details: Dict[str, Any],
        mode: str = "subscription",
        currency: Optional[str] = None,
        interval: Optional[str] = None,
        return_url: Optional[str] = None,
        user_id: Optional[str] = None,
        **options
    ) -> Dict[str, Any]:
        """
        Create a Stripe Checkout Session with a single line item.

        Args:
            order_id: Client-generated order identifier (client_reference_id)
            amount: Price in major units
            plan_id: Plan identifier, stored in product metadata
            plan_name: Product name on the hosted page
            customer_details: Must contain email
            mode: "subscription" or "payment" (lifetime plans)
            currency: ISO currency code, defaults to configured currency
            interval: Plan interval for subscriptions ("month"/"year")
            return_url: Success page URL

        Returns:
            {"success": True, "session_id", "url"} or {"success": False, "message"}
        """
        logger.info(f"Creating Stripe checkout session for order {order_id} ({mode})")

        currency = (currency or self.default_currency).lower()
        data = {
            "payment_method_types[0]": "card",
            "line_items[0][price_data][currency]": currency,
            "line_items[0][price_data][product_data][name]": plan_name,
            "line_items[0][price_data][product_data][metadata][plan_id]": plan_id,
            "line_items[0][price_data][unit_amount]": to_minor_units(amount),
            "line_items[0][quantity]": 1,
            "mode": mode,
            "client_reference_id": order_id,
            "customer_email": customer_details.get("email"),
            "metadata[order_id]": order_id,
            "metadata[plan_id]": plan_id,
            "metadata[mode]": mode
        }
        if user_id:
            data["metadata[user_id]"] = user_id
        if mode == "subscription":
            recurring = "year" if (interval or "").lower() in YEARLY_INTERVALS else "month"
            data["line_items[0][price_data][recurring][interval]"] = recurring
        data.update(self._return_urls(return_url))

        try:
            response = await run_in_threadpool(
                requests.post,
                f"{self.base_url}/checkout/sessions",
                headers=self._auth_headers(),
                data=data,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Stripe checkout request failed: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to reach Stripe: {str(e)}"
            }

        body = self._json(response)

        if response.status_code != 200:
            message = (body.get("error") or {}).get("message", "Stripe request failed")
            logger.error(f"Stripe rejected order {order_id}: {message}")
            return {
                "success": False,
                "message": message
            }

        return {
            "success": True,
            "session_id": body.get("id"),
            "url": body.get("url")
        }

    async def check_transaction_status(self, order_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        """
        Retrieve a checkout session by its id (the token stored for the order).

        Returns:
            {"success": True, "status": "paid"|<session status>, "data": {...}} or
            {"success": False, "message"}
        """
        if not token:
            return {"success": False, "message": "Stripe status lookup needs the session id"}

        logger.info(f"Checking Stripe session {token} for order {order_id}")

        try:
            response = await run_in_threadpool(
                requests.get,
                f"{self.base_url}/checkout/sessions/{token}",
                headers=self._auth_headers(),
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to check Stripe session {token}: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to check payment status: {str(e)}"
            }

        body = self._json(response)
        payment_status = body.get("payment_status")
        session_status = body.get("status", "open")
        if payment_status in ("paid", "no_payment_required"):
            status = "paid"
        elif session_status == "complete":
            # Async payment methods leave a complete session unpaid until they settle
            status = "pending"
        else:
            status = session_status

        return {
            "success": True,
            "status": status,
            "data": {
                "id": body.get("id"),
                "status": body.get("status"),
                "payment_status": body.get("payment_status")
            }
        }

    @staticmethod
    def _json(response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
