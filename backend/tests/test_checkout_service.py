"""
Tests for checkout session orchestration.

This test suite validates that:
- Order IDs follow the SUB-{user}-{epoch millis} format
- A provider failure or missing token raises PaymentInitError and writes nothing
- A successful session is recorded as pending
- A failed session write does not block the checkout
"""

import re
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from pymongo.errors import PyMongoError
from stokcer.core.exceptions import PaymentInitError
from stokcer.services.cart_service import CartService
from stokcer.services.cart_store import CartStore, MemoryStorage
from stokcer.services.checkout_service import CheckoutService
from stokcer.utils.helpers import generate_order_id

USER = {
    "id": "5f8d0d55b54764421b7156c9",
    "email": "rina@example.com",
    "phone": "081234561234",
    "first_name": "Rina"
}
PLAN = {"id": "premium-yearly", "name": "Premium Tahunan", "price": 350000, "interval": "year"}


def make_db():
    mock_db = MagicMock()
    mock_db.checkout_sessions = MagicMock()
    mock_db.checkout_sessions.insert_one = AsyncMock(return_value=MagicMock())
    mock_db.notification_logs = MagicMock()
    mock_db.notification_logs.insert_one = AsyncMock(return_value=MagicMock())
    return mock_db


def make_provider(response=None, side_effect=None, name="midtrans"):
    provider = MagicMock()
    provider.name = name
    provider.default_currency = "IDR"
    provider.create_transaction = AsyncMock(return_value=response, side_effect=side_effect)
    return provider


class TestOrderId:
    """Test client-side order ID generation."""

    def test_format(self):
        with patch("stokcer.utils.helpers.current_epoch_millis", return_value=1735517531000):
            assert generate_order_id("5f8d0d55b54764421b7156c9") == "SUB-5f8d0d55-1735517531000"

    def test_prefix_and_short_user_id(self):
        order_id = generate_order_id("u1", prefix="ORD")
        assert re.fullmatch(r"ORD-u1-\d{13}", order_id)


class TestCreateSession:
    """Test CheckoutService.create_session."""

    @pytest.mark.asyncio
    async def test_success_records_pending_session(self):
        mock_db = make_db()
        provider = make_provider({"success": True, "token": "snap-token", "redirect_url": "https://snap/x"})
        service = CheckoutService(provider, mock_db)

        result = await service.create_session(USER, PLAN)

        assert result.token == "snap-token"
        assert result.provider == "midtrans"
        assert result.redirect_url == "https://snap/x"
        assert re.fullmatch(r"SUB-5f8d0d55-\d{13}", result.order_id)

        mock_db.checkout_sessions.insert_one.assert_called_once()
        row = mock_db.checkout_sessions.insert_one.call_args[0][0]
        assert row["order_id"] == result.order_id
        assert row["status"] == "pending"
        assert row["provider_token"] == "snap-token"
        assert row["amount"] == 350000
        assert row["user_id"] == USER["id"]
        assert "_id" not in row
        mock_db.notification_logs.insert_one.assert_called_once()

    @pytest.mark.asyncio
    async def test_customer_details_fill_profile_gaps(self):
        provider = make_provider({"success": True, "token": "t"})
        service = CheckoutService(provider, make_db())

        await service.create_session(USER, PLAN)

        kwargs = provider.create_transaction.call_args.kwargs
        assert kwargs["amount"] == 350000
        assert kwargs["plan_name"] == "Premium Tahunan"
        assert kwargs["interval"] == "year"
        assert kwargs["customer_details"] == {
            "first_name": "Rina",
            "last_name": "User",
            "email": "rina@example.com",
            "phone": "081234561234"
        }

    @pytest.mark.asyncio
    async def test_missing_token_raises_and_writes_nothing(self):
        """Test a provider answer without a token blocks the checkout."""
        mock_db = make_db()
        service = CheckoutService(make_provider({"success": True}), mock_db)

        with pytest.raises(PaymentInitError) as exc_info:
            await service.create_session(USER, PLAN)

        assert exc_info.value.message == "No payment token received"
        mock_db.checkout_sessions.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_error_message_is_surfaced(self):
        mock_db = make_db()
        service = CheckoutService(
            make_provider({"success": False, "message": "transaction_details.gross_amount is required"}),
            mock_db
        )

        with pytest.raises(PaymentInitError) as exc_info:
            await service.create_session(USER, PLAN)

        assert exc_info.value.message == "transaction_details.gross_amount is required"
        assert exc_info.value.provider == "midtrans"
        mock_db.checkout_sessions.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_exception_is_wrapped(self):
        mock_db = make_db()
        service = CheckoutService(make_provider(side_effect=RuntimeError("boom")), mock_db)

        with pytest.raises(PaymentInitError):
            await service.create_session(USER, PLAN)

        mock_db.checkout_sessions.insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_write_failure_is_non_fatal(self):
        """Test the provider stays the source of truth when the local log fails."""
        mock_db = make_db()
        mock_db.checkout_sessions.insert_one = AsyncMock(side_effect=PyMongoError("write failed"))
        service = CheckoutService(make_provider({"success": True, "token": "t"}), mock_db)

        result = await service.create_session(USER, PLAN)

        assert result.token == "t"

    @pytest.mark.asyncio
    async def test_redirect_provider_session_id(self):
        """Test a session id and URL are accepted in place of a token."""
        provider = make_provider(
            {"success": True, "session_id": "cs_test_1", "url": "https://checkout.stripe.com/c/cs_test_1"},
            name="stripe"
        )
        provider.default_currency = "usd"
        mock_db = make_db()
        service = CheckoutService(provider, mock_db)

        result = await service.create_session(USER, PLAN, mode="payment")

        assert result.token == "cs_test_1"
        assert result.redirect_url == "https://checkout.stripe.com/c/cs_test_1"
        row = mock_db.checkout_sessions.insert_one.call_args[0][0]
        assert row["currency"] == "USD"
        assert provider.create_transaction.call_args.kwargs["mode"] == "payment"


class TestCreateCartSession:
    """Test paying for the cart contents."""

    @pytest.mark.asyncio
    async def test_empty_cart(self):
        cart = CartService(CartStore(MemoryStorage()))
        service = CheckoutService(make_provider({"success": True, "token": "t"}), make_db())

        with pytest.raises(ValueError):
            await service.create_cart_session(USER, cart)

    @pytest.mark.asyncio
    async def test_cart_snapshot_is_charged(self):
        cart = CartService(CartStore(MemoryStorage()))
        await cart.add_item({"id": "p1"}, {"id": "v1", "price": 10000}, 2)
        await cart.add_item({"id": "p2"}, {"id": "v2", "price": 5000}, 1)

        mock_db = make_db()
        provider = make_provider({"success": True, "token": "t"})
        service = CheckoutService(provider, mock_db)

        result = await service.create_cart_session(USER, cart)

        assert result.order_id.startswith("ORD-5f8d0d55-")
        kwargs = provider.create_transaction.call_args.kwargs
        assert kwargs["amount"] == 25000
        assert kwargs["mode"] == "payment"
        row = mock_db.checkout_sessions.insert_one.call_args[0][0]
        assert [item["variant_id"] for item in row["metadata"]["items"]] == ["v1", "v2"]
        # Cart is kept until the payment is confirmed
        assert cart.count() == 3


class TestHistory:
    """Test checkout history lookup."""

    @pytest.mark.asyncio
    async def test_history(self):
        mock_db = make_db()
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[{"_id": "abc", "order_id": "SUB-1"}])
        mock_db.checkout_sessions.find = MagicMock(return_value=cursor)
        mock_db.checkout_sessions.count_documents = AsyncMock(return_value=1)

        result = await CheckoutService(None, mock_db).get_history("user1", limit=5)

        assert result["total"] == 1
        assert result["sessions"] == [{"id": "abc", "order_id": "SUB-1"}]
        cursor.sort.assert_called_once_with("created_at", -1)
