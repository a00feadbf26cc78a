"""
Tests for cart domain logic.

This test suite validates that:
- Adding merges quantities per variant and persists the cart
- Inventory-managed variants never exceed the available stock
- A rejected add leaves the cart unchanged
- Totals are formatted with the configured currency and locale
"""

import json
import pytest
from decimal import Decimal
from unittest.mock import MagicMock
from stokcer.core.exceptions import InsufficientStockError
from stokcer.services.cart_service import CartService
from stokcer.services.cart_store import CartStore, MemoryStorage

KEY = "e-commerce-cart"


def make_cart(storage=None, **kwargs):
    return CartService(CartStore(storage or MemoryStorage(), key=KEY), **kwargs)


def stored_lines(storage):
    return json.loads(storage.get_item(KEY))


class TestAddItem:
    """Test adding variants to the cart."""

    @pytest.mark.asyncio
    async def test_stock_limited_add(self):
        """Test the managed-inventory scenario: 2 of 5 fits, 4 more does not."""
        cart = make_cart()
        product = {"id": "p1"}
        variant = {"id": "v1", "manage_inventory": True, "price": 10000}

        await cart.add_item(product, variant, 2, 5)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2
        assert cart.total() == "Rp 20.000"

        with pytest.raises(InsufficientStockError) as exc_info:
            await cart.add_item(product, variant, 4, 5)

        assert exc_info.value.available_quantity == 5
        assert str(exc_info.value) == "Not enough stock for p1. Only 5 left."
        assert cart.items[0].quantity == 2
        assert cart.total() == "Rp 20.000"

    @pytest.mark.asyncio
    async def test_rejected_add_is_not_persisted(self):
        storage = MemoryStorage()
        cart = make_cart(storage)
        variant = {"id": "v1", "manage_inventory": True, "price": 10000}

        await cart.add_item({"id": "p1"}, variant, 5, 5)
        with pytest.raises(InsufficientStockError):
            await cart.add_item({"id": "p1"}, variant, 1, 5)

        assert stored_lines(storage)[0]["quantity"] == 5

    @pytest.mark.asyncio
    async def test_stock_falls_back_to_variant_inventory(self):
        """Test the variant's own inventory is used when no stock is supplied."""
        cart = make_cart()
        variant = {"id": "v1", "manage_inventory": True, "inventory_quantity": 1, "price": 10}

        await cart.add_item({"id": "p1", "title": "Lip Tint"}, variant, 1)
        with pytest.raises(InsufficientStockError) as exc_info:
            await cart.add_item({"id": "p1", "title": "Lip Tint"}, variant, 1)

        assert "Lip Tint" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unmanaged_variant_ignores_stock(self):
        cart = make_cart()
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 50, 1)
        assert cart.count() == 50

    @pytest.mark.asyncio
    async def test_quantities_never_exceed_available(self):
        """Test a sequence of adds stays within the last supplied stock."""
        cart = make_cart()
        variant = {"id": "v1", "manage_inventory": True, "price": 10}

        for quantity in (1, 3, 2, 1, 4, 1):
            try:
                await cart.add_item({"id": "p1"}, variant, quantity, 6)
            except InsufficientStockError:
                pass
            assert cart.get_item("v1").quantity <= 6

        assert cart.get_item("v1").quantity == 6

    @pytest.mark.asyncio
    async def test_same_variant_merges(self):
        cart = make_cart()
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 1)
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 2)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
    async def test_invalid_quantity(self, quantity):
        cart = make_cart()
        with pytest.raises(ValueError):
            await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, quantity)
        assert cart.items == []

    @pytest.mark.asyncio
    async def test_legacy_price_is_normalized_on_entry(self):
        """Test a catalog variant with minor-unit price enters in major units."""
        cart = make_cart()
        line = await cart.add_item({"id": "p1"}, {"id": "v1", "price_in_cents": 1999}, 1)

        assert line.variant.price == 19.99
        assert cart.subtotal() == Decimal("19.99")

    @pytest.mark.asyncio
    async def test_add_opens_cart(self):
        listener = MagicMock()
        cart = make_cart(on_open=listener)

        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 1)

        assert cart.is_open is True
        listener.assert_called_once()

    @pytest.mark.asyncio
    async def test_failing_open_listener_does_not_break_add(self):
        cart = make_cart(on_open=MagicMock(side_effect=RuntimeError("ui gone")))

        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 1)

        assert cart.count() == 1


class TestCartMutations:
    """Test remove, update and clear."""

    @pytest.mark.asyncio
    async def test_add_then_remove_restores_cart(self):
        cart = make_cart()
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 1)
        before = [item.model_dump() for item in cart.items]

        await cart.add_item({"id": "p2"}, {"id": "v2", "price": 20}, 3)
        cart.remove_item("v2")

        assert [item.model_dump() for item in cart.items] == before

    def test_remove_absent_is_noop(self):
        cart = make_cart()
        cart.remove_item("missing")
        assert cart.items == []

    @pytest.mark.asyncio
    async def test_update_quantity_overwrites(self):
        storage = MemoryStorage()
        cart = make_cart(storage)
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10, "manage_inventory": True}, 1, 2)

        # No stock re-check on update
        cart.update_quantity("v1", 7)

        assert cart.get_item("v1").quantity == 7
        assert stored_lines(storage)[0]["quantity"] == 7

    @pytest.mark.asyncio
    async def test_update_quantity_rejects_non_positive(self):
        cart = make_cart()
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 1)

        with pytest.raises(ValueError):
            cart.update_quantity("v1", 0)

        assert cart.get_item("v1").quantity == 1

    @pytest.mark.asyncio
    async def test_clear(self):
        storage = MemoryStorage()
        cart = make_cart(storage)
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 1)

        cart.clear()

        assert cart.items == []
        assert stored_lines(storage) == []

    @pytest.mark.asyncio
    async def test_state_survives_reload(self):
        storage = MemoryStorage()
        cart = make_cart(storage)
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10}, 2)

        assert make_cart(storage).count() == 2


class TestCartTotals:
    """Test derived totals."""

    @pytest.mark.asyncio
    async def test_total_invariant_under_split_adds(self):
        """Test one add of n equals n adds of 1 for unmanaged variants."""
        single = make_cart()
        split = make_cart()
        variant = {"id": "v1", "price": 0.1}

        await single.add_item({"id": "p1"}, variant, 10)
        for _ in range(10):
            await split.add_item({"id": "p1"}, variant, 1)

        assert single.subtotal() == split.subtotal() == Decimal("1.0")
        assert single.total() == split.total()

    @pytest.mark.asyncio
    async def test_count_and_subtotal(self):
        cart = make_cart()
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 15000}, 2)
        await cart.add_item({"id": "p2"}, {"id": "v2", "price": 2500.5}, 1)

        assert cart.count() == 3
        assert cart.subtotal() == Decimal("32500.5")

    @pytest.mark.asyncio
    async def test_total_in_other_currency(self):
        cart = make_cart(currency="USD", locale="en-US")
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 1234.5}, 1)

        assert cart.total() == "$1,234.50"

    def test_empty_total(self):
        assert make_cart().total() == "Rp 0"
