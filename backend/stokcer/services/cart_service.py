import logging
from decimal import Decimal
from typing import Any, Callable, List, Optional, Union

from stokcer.core.config import settings
from stokcer.core.exceptions import InsufficientStockError
from stokcer.models.cart import CartLineItem, CartProduct, CartVariant
from stokcer.services.cart_migrations import migrate_legacy_variant
from stokcer.services.cart_store import CartStore
from stokcer.utils.money import format_money

logger = logging.getLogger(__name__)


def _as_product(product: Union[CartProduct, dict]) -> CartProduct:
    if isinstance(product, CartProduct):
        return product
    return CartProduct.model_validate(product)


def _as_variant(variant: Union[CartVariant, dict]) -> CartVariant:
    if isinstance(variant, CartVariant):
        return variant
    # Entry boundary: catalog data may still carry legacy minor-unit prices
    variant, _ = migrate_legacy_variant(dict(variant))
    return CartVariant.model_validate(variant)


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


class CartService:
    """
    Cart domain logic for one device session.

    Holds the cart in memory, loaded from the store on construction, and
    writes it back after every mutation. All mutation goes through these
    methods.
    """

    def __init__(
        self,
        store: CartStore,
        currency: Optional[str] = None,
        locale: Optional[str] = None,
        on_open: Optional[Callable[[], None]] = None
    ):
        self.store = store
        self.currency = currency or settings.DEFAULT_CURRENCY
        self.locale = locale or settings.DEFAULT_LOCALE
        self.on_open = on_open
        self.is_open = False
        self._items: List[CartLineItem] = store.load()

    @property
    def items(self) -> List[CartLineItem]:
        return list(self._items)

    def get_item(self, variant_id: str) -> Optional[CartLineItem]:
        for item in self._items:
            if item.variant_id == variant_id:
                return item
        return None

    async def add_item(
        self,
        product: Union[CartProduct, dict],
        variant: Union[CartVariant, dict],
        quantity: int,
        available_quantity: Optional[int] = None
    ) -> CartLineItem:
        """
        Add a quantity of a variant to the cart.

        Merges into the existing line for the variant if there is one. For
        inventory-managed variants the resulting quantity may not exceed
        available_quantity.

        The stock check and the mutation happen without yielding, but nothing
        serializes separate calls: two carts for the same device may both
        pass the check against a stale snapshot.

        Raises:
            InsufficientStockError: Not enough stock; the cart is unchanged
            ValueError: Quantity is not a positive integer
        """
        quantity = _check_quantity(quantity)
        product = _as_product(product)
        variant = _as_variant(variant)

        existing = self.get_item(variant.id)

        if variant.manage_inventory:
            if available_quantity is None:
                available_quantity = variant.inventory_quantity or 0
            in_cart = existing.quantity if existing else 0
            if in_cart + quantity > available_quantity:
                logger.info(
                    f"Rejected add of {quantity} x {variant.id}: {in_cart} in cart, {available_quantity} available"
                )
                raise InsufficientStockError(product.title or product.id, available_quantity)

        if existing:
            line = existing.model_copy(update={"quantity": existing.quantity + quantity})
            self._items = [line if item.variant_id == variant.id else item for item in self._items]
        else:
            line = CartLineItem(product=product, variant=variant, quantity=quantity)
            self._items = self._items + [line]

        self._persist()
        self.open()
        return line

    def remove_item(self, variant_id: str) -> None:
        """Remove the line for a variant; no-op if absent."""
        self._items = [item for item in self._items if item.variant_id != variant_id]
        self._persist()

    def update_quantity(self, variant_id: str, quantity: int) -> None:
        """
        Overwrite the quantity of a line.

        Stock is not re-checked here; callers are expected to offer only
        quantities the storefront allows.
        """
        quantity = _check_quantity(quantity)
        self._items = [
            item.model_copy(update={"quantity": quantity}) if item.variant_id == variant_id else item
            for item in self._items
        ]
        self._persist()

    def clear(self) -> None:
        """Empty the cart (after a successful checkout)."""
        self._items = []
        self._persist()

    def subtotal(self) -> Decimal:
        return sum((item.subtotal for item in self._items), Decimal("0"))

    def total(self) -> str:
        """Cart total formatted for the configured currency and locale."""
        return format_money(self.subtotal(), self.currency, self.locale)

    def count(self) -> int:
        return sum(item.quantity for item in self._items)

    def format_price(self, amount) -> str:
        return format_money(amount, self.currency, self.locale)

    def open(self) -> None:
        """Raise the cart-open signal for the UI."""
        self.is_open = True
        if self.on_open is not None:
            try:
                self.on_open()
            except Exception as e:
                logger.error(f"Cart open listener failed: {str(e)}")

    def close(self) -> None:
        self.is_open = False

    def _persist(self) -> None:
        self.store.save(self._items)
