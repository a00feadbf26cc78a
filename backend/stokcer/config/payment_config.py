"""
Payment system configuration for checkout providers.

Supports three operating modes:
- SIMULATION: Fake provider for local development (no real API calls)
- SANDBOX: Test with provider sandbox APIs (for development/staging)
- PRODUCTION: Real transactions with live APIs
"""

import os
from typing import Dict, Any


# Payment operating mode
PAYMENT_MODE = os.getenv("PAYMENT_MODE", "SIMULATION")  # SIMULATION | SANDBOX | PRODUCTION

# Payment configuration
PAYMENT_CONFIG: Dict[str, Any] = {
    "mode": PAYMENT_MODE,

    # Provider used when a checkout request does not name one
    "default_provider": os.getenv("PAYMENT_DEFAULT_PROVIDER", "midtrans"),

    # Midtrans Snap Configuration
    "midtrans": {
        "sandbox_url": "https://app.sandbox.midtrans.com/snap/v1",
        "production_url": "https://app.midtrans.com/snap/v1",
        "sandbox_api_url": "https://api.sandbox.midtrans.com/v2",
        "production_api_url": "https://api.midtrans.com/v2",
        "server_key": os.getenv("MIDTRANS_SERVER_KEY", ""),
        "client_key": os.getenv("MIDTRANS_CLIENT_KEY", ""),
        "currency": "IDR"
    },

    # Stripe Checkout Configuration
    "stripe": {
        "sandbox_url": "https://api.stripe.com/v1",
        "production_url": "https://api.stripe.com/v1",
        "secret_key": os.getenv("STRIPE_SECRET_KEY", ""),
        "publishable_key": os.getenv("STRIPE_PUBLISHABLE_KEY", ""),
        "currency": os.getenv("STRIPE_CURRENCY", "usd"),
        "success_path": "/subscription/success",
        "cancel_path": "/pricing"
    },

    # Socket-level timeout for provider HTTP calls
    "http_timeout_seconds": int(os.getenv("PAYMENT_HTTP_TIMEOUT_SECONDS", "30")),

    # Order ID prefix for subscription checkouts
    "order_id_prefix": "SUB",

    # Customer details sent when the user profile has gaps
    "customer_defaults": {
        "first_name": "Stokcer",
        "last_name": "User",
        "phone": "08123456789"
    },

    # Simulation Settings (for SIMULATION mode only)
    "simulation": {
        "auto_success_pattern": "0000",  # Phones ending in 0000 report paid when polled
        "auto_failure_pattern": "9999",  # Phones ending in 9999 fail at session creation
    }
}


def get_provider_config(provider: str) -> Dict[str, Any]:
    """
    Get configuration for a specific payment provider.

    Args:
        provider: Provider name ("midtrans", "stripe")

    Returns:
        Provider configuration dictionary
    """
    return PAYMENT_CONFIG.get(provider, {})


def get_provider_url(provider: str, api: bool = False) -> str:
    """
    Get the appropriate API URL for a provider based on the current mode.

    Args:
        provider: Provider name
        api: Return the core/status API URL instead of the checkout URL

    Returns:
        API URL for the provider
    """
    config = get_provider_config(provider)
    prefix = "production" if PAYMENT_MODE == "PRODUCTION" else "sandbox"
    key = f"{prefix}_api_url" if api else f"{prefix}_url"
    return config.get(key) or config.get(f"{prefix}_url", "")
