"""
Durable cart persistence.

A cart is a single JSON array of line items stored under a fixed key in a
key-value storage scoped to one device/browser profile, like localStorage.
Loading never fails and saving never raises: a missing or corrupt record is
an empty cart, and a failed write is logged and dropped.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from stokcer.core.config import settings
from stokcer.core.exceptions import PersistenceWriteError
from stokcer.models.cart import CartLineItem
from stokcer.services.cart_migrations import migrate_legacy_cart_items

logger = logging.getLogger(__name__)

_line_items_adapter = TypeAdapter(List[CartLineItem])


class MemoryStorage:
    """In-process key-value storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """Key-value storage backed by one JSON file per key in a directory."""

    def __init__(self, base_dir):
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        # Write to a sibling temp file and rename so readers never see half a record
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def get_device_storage(device_id: str, root: Optional[str] = None) -> FileStorage:
    """Storage scoped to one device profile."""
    return FileStorage(Path(root or settings.CART_STORAGE_DIR) / device_id)


class CartStore:
    """Loads and saves the line items of one cart."""

    def __init__(self, storage, key: Optional[str] = None):
        self.storage = storage
        self.key = key or settings.CART_STORAGE_KEY

    def load(self) -> List[CartLineItem]:
        """
        Rehydrate the cart.

        Returns an empty list on missing or corrupt data. Legacy minor-unit
        prices are migrated once and written back immediately.
        """
        try:
            raw = self.storage.get_item(self.key)
        except Exception as e:
            logger.warning(f"Could not read stored cart '{self.key}': {str(e)}")
            return []

        if not raw:
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Stored cart '{self.key}' is not valid JSON, starting empty")
            return []

        if not isinstance(data, list):
            logger.warning(f"Stored cart '{self.key}' is not a list, starting empty")
            return []

        data, migrated = migrate_legacy_cart_items(data)

        try:
            items = _line_items_adapter.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Stored cart '{self.key}' failed validation, starting empty: {e.error_count()} errors")
            return []

        items = self._dedupe(items)

        if migrated:
            self.save(items)

        return items

    def save(self, items: Iterable[CartLineItem]) -> None:
        """Persist the cart; failures are logged, never raised."""
        try:
            self._write(list(items))
        except PersistenceWriteError as e:
            logger.error(f"Failed to persist cart '{self.key}': {str(e)}")

    def _write(self, items: List[CartLineItem]) -> None:
        payload = _line_items_adapter.dump_json(items).decode("utf-8")
        try:
            self.storage.set_item(self.key, payload)
        except Exception as e:
            # Storage backends are pluggable; any failure is a write failure
            raise PersistenceWriteError(str(e)) from e

    @staticmethod
    def _dedupe(items: List[CartLineItem]) -> List[CartLineItem]:
        seen = set()
        unique = []
        for item in items:
            if item.variant_id in seen:
                logger.warning(f"Dropping duplicate stored line for variant {item.variant_id}")
                continue
            seen.add(item.variant_id)
            unique.append(item)
        return unique
