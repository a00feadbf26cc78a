"""
Simulation service for testing checkouts without real API calls.

This provider is selected in SIMULATION mode for local development and
testing. Its behaviour is driven by the customer's phone number.
"""

import logging
import secrets
from typing import Dict, Any, Optional

from stokcer.config.payment_config import PAYMENT_CONFIG
from stokcer.core.config import settings

logger = logging.getLogger(__name__)


# Provider-side status of every simulated order, keyed by order id
_simulated_statuses: Dict[str, str] = {}


class SimulationService:
    """Fake checkout provider."""

    name = "simulation"

    def __init__(self, flavour: str = "midtrans"):
        # "midtrans" answers with a token, "stripe" with a session id and URL
        self.flavour = flavour
        self.redirect_style = flavour == "stripe"

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
        Simulate checkout session creation.

        Phone number patterns:
        - Ending in 9999: initialization is declined
        - Ending in 0000: session reports paid when polled
        - Other: session stays pending until simulate_result() is called

        Returns:
            Provider-shaped response with simulation flags
        """
        logger.info(f"[SIMULATION] Creating checkout session for order {order_id}")

        phone = str(customer_details.get("phone") or "")
        simulation_config = PAYMENT_CONFIG["simulation"]

        if phone.endswith(simulation_config["auto_failure_pattern"]):
            logger.info(f"[SIMULATION] Auto-failure pattern detected for order {order_id}")
            return {
                "success": False,
                "message": "Simulation: payment initialization declined",
                "simulation_mode": True
            }

        auto_success = phone.endswith(simulation_config["auto_success_pattern"])
        _simulated_statuses[order_id] = "settlement" if auto_success else "pending"

        token = f"SIM_{secrets.token_hex(8).upper()}"
        response = {
            "success": True,
            "simulation_mode": True,
            "auto_success": auto_success,
            "message": f"Simulation: {plan_name} for {amount:.0f}"
        }

        if self.redirect_style:
            response["session_id"] = token
            response["url"] = f"{settings.BASE_URL}/simulate/checkout/{token}"
        else:
            response["token"] = token
            response["redirect_url"] = f"{settings.BASE_URL}/simulate/snap/{token}"

        return response

    async def check_transaction_status(self, order_id: str, token: Optional[str] = None) -> Dict[str, Any]:
        """Report the simulated provider-side status of an order."""
        logger.info(f"[SIMULATION] Checking status for order {order_id}")

        status = _simulated_statuses.get(order_id)
        if status is None:
            return {
                "success": False,
                "message": "Transaction not found",
                "simulation_mode": True
            }

        return {
            "success": True,
            "status": status,
            "data": {"order_id": order_id, "transaction_status": status},
            "simulation_mode": True
        }

    @staticmethod
    def simulate_result(order_id: str, status: str) -> bool:
        """
        Set the provider-side status of a simulated order.

        Returns:
            False if the order was never created through the simulator
        """
        if order_id not in _simulated_statuses:
            return False
        logger.info(f"[SIMULATION] Order {order_id} now reports '{status}'")
        _simulated_statuses[order_id] = status
        return True

    @staticmethod
    def reset() -> None:
        _simulated_statuses.clear()
