"""
Midtrans Snap API service.

Documentation: https://docs.midtrans.com/reference/snap-api-overview
"""

import base64
import logging
from typing import Dict, Any, Optional

import requests
from fastapi.concurrency import run_in_threadpool

from stokcer.config.payment_config import PAYMENT_CONFIG, get_provider_config, get_provider_url

logger = logging.getLogger(__name__)


class MidtransService:
    """Midtrans Snap payment service (token-style checkout)."""

    name = "midtrans"

    def __init__(self):
        self.config = get_provider_config("midtrans")
        self.snap_url = get_provider_url("midtrans")
        self.api_url = get_provider_url("midtrans", api=True)
        self.server_key = self.config.get("server_key", "")
        self.default_currency = self.config.get("currency", "IDR")
        self.timeout = PAYMENT_CONFIG["http_timeout_seconds"]

    def _auth_headers(self) -> Dict[str, str]:
        """Midtrans uses the server key as the Basic Auth username with an empty password."""
        encoded = base64.b64encode(f"{self.server_key}:".encode()).decode()
        return {
            "Authorization": f"Basic {encoded}",
            "Accept": "application/json",
            "Content-Type": "application/json"
        }

    async def create_transaction(
        self,
        order_id: str,
        amount: float,
        plan_id: str,
        plan_name: str,
        customer_details: Dict[str, Any],
        **options
    ) -> Dict[str, Any]:
        """
        Create a Snap transaction and obtain its token.

        Args:
            order_id: Client-generated order identifier
            amount: Amount in IDR
            plan_id: Plan identifier (item id)
            plan_name: Plan name shown on the Snap page
            customer_details: first_name, last_name, email, phone

        Returns:
            {"success": True, "token", "redirect_url"} or {"success": False, "message"}
        """
        logger.info(f"Creating Midtrans Snap transaction for order {order_id}")

        gross_amount = int(round(amount))
        payload = {
            "transaction_details": {
                "order_id": order_id,
                "gross_amount": gross_amount
            },
            "item_details": [
                {
                    "id": plan_id,
                    "price": gross_amount,
                    "quantity": 1,
                    # Midtrans rejects item names over 50 characters
                    "name": plan_name[:50]
                }
            ],
            "customer_details": customer_details
        }

        try:
            response = await run_in_threadpool(
                requests.post,
                f"{self.snap_url}/transactions",
                headers=self._auth_headers(),
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Midtrans transaction request failed: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to reach Midtrans: {str(e)}"
            }

        data = self._json(response)

        if response.status_code not in (200, 201):
            messages = data.get("error_messages") or [data.get("status_message") or "Midtrans request failed"]
            logger.error(f"Midtrans rejected order {order_id}: {messages}")
            return {
                "success": False,
                "message": "; ".join(str(m) for m in messages)
            }

        logger.info(f"Midtrans Snap token issued for order {order_id}")
        return {
            "success": True,
            "token": data.get("token"),
            "redirect_url": data.get("redirect_url")
        }

    async def check_transaction_status(self, order_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        """
        Ask Midtrans for the status of an order.

        Returns:
            {"success": True, "status": <transaction_status>, "data": {...}} or
            {"success": False, "message"}
        """
        logger.info(f"Checking Midtrans status for order {order_id}")

        try:
            response = await run_in_threadpool(
                requests.get,
                f"{self.api_url}/{order_id}/status",
                headers=self._auth_headers(),
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to check Midtrans status for {order_id}: {str(e)}")
            return {
                "success": False,
                "message": f"Failed to check payment status: {str(e)}"
            }

        data = self._json(response)
        transaction_status = data.get("transaction_status")
        if not transaction_status:
            # Midtrans answers 200 with status_code 404 for unknown orders
            return {
                "success": False,
                "message": data.get("status_message", "Transaction not found")
            }

        return {
            "success": True,
            "status": transaction_status,
            "data": data
        }

    @staticmethod
    def _json(response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
