import re
import time
from datetime import datetime, timezone

DEVICE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def format_document(document: dict) -> dict:
    """Format MongoDB document for API response."""
    if document and "_id" in document:
        document["id"] = str(document["_id"])
        del document["_id"]
    return document


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def current_epoch_millis() -> int:
    return int(time.time() * 1000)


def generate_order_id(user_id: str, prefix: str = "SUB") -> str:
    """
    Generate a client-side order ID: {prefix}-{first 8 chars of user id}-{epoch millis}.

    Human-traceable back to the user; unique per user as long as two
    checkouts do not start in the same millisecond.
    """
    return f"{prefix}-{str(user_id)[:8]}-{current_epoch_millis()}"


def is_valid_device_id(device_id: str) -> bool:
    """Device IDs name a storage directory, so only a safe charset is allowed."""
    return bool(device_id) and DEVICE_ID_PATTERN.match(device_id) is not None
