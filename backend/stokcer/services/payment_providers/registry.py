"""
Provider selection.

The payment mode decides which implementation backs a provider name, so the
real provider services never branch on simulation themselves.
"""

import logging
from typing import Dict, Optional

from stokcer.config.payment_config import PAYMENT_CONFIG, PAYMENT_MODE
from stokcer.services.payment_providers.midtrans_service import MidtransService
from stokcer.services.payment_providers.simulation_service import SimulationService
from stokcer.services.payment_providers.stripe_service import StripeService

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("midtrans", "stripe")

_REAL_PROVIDERS = {
    "midtrans": MidtransService,
    "stripe": StripeService,
}

_instances: Dict[str, object] = {}


def get_payment_provider(name: Optional[str] = None):
    """
    Get the provider service for a provider name.

    Args:
        name: "midtrans", "stripe" or "simulation"; defaults to the configured provider

    Raises:
        ValueError: Unknown provider name
    """
    name = (name or PAYMENT_CONFIG["default_provider"]).lower()

    if name == "simulation":
        name = PAYMENT_CONFIG["default_provider"]
        key = f"simulation:{name}"
    elif name not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported provider: {name}")
    elif PAYMENT_MODE == "SIMULATION":
        key = f"simulation:{name}"
    else:
        key = name

    if key not in _instances:
        if key.startswith("simulation:"):
            _instances[key] = SimulationService(flavour=name)
        else:
            _instances[key] = _REAL_PROVIDERS[name]()
        logger.info(f"Payment provider '{key}' initialized ({PAYMENT_MODE} mode)")

    return _instances[key]


def reset_providers() -> None:
    _instances.clear()
