"""
One-time migration of legacy cart data.

Early storefront builds stored variant prices in minor units under
``price_in_cents``. Everything downstream of these functions sees major
units in ``price`` only.
"""

import logging
from typing import Any, Dict, List, Tuple

from stokcer.utils.money import from_minor_units, to_float

logger = logging.getLogger(__name__)


def migrate_legacy_variant(variant: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """
    Convert a variant carrying ``price_in_cents`` to major units.

    Returns:
        Tuple of (variant, migrated)
    """
    if "price_in_cents" not in variant:
        return variant, False

    migrated = dict(variant)
    cents = migrated.pop("price_in_cents")
    if cents:
        migrated["price"] = to_float(from_minor_units(cents))
    else:
        migrated.setdefault("price", 0)
    return migrated, True


def migrate_legacy_cart_items(items: List[Any]) -> Tuple[List[Any], bool]:
    """
    Migrate every stored line item whose variant uses the legacy price field.

    Items that are not dicts are passed through untouched; validation decides
    what to do with them.

    Returns:
        Tuple of (items, any_migrated)
    """
    any_migrated = False
    result = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get("variant"), dict):
            variant, migrated = migrate_legacy_variant(item["variant"])
            if migrated:
                item = {**item, "variant": variant}
                any_migrated = True
        result.append(item)

    if any_migrated:
        logger.info("Migrated legacy minor-unit prices in stored cart")
    return result, any_migrated
