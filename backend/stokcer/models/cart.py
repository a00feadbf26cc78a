from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from stokcer.utils.helpers import get_current_timestamp
from stokcer.utils.money import to_decimal


class CartProduct(BaseModel):
    """Catalog product reference stored with a cart line."""
    id: str
    title: Optional[str] = None
    image: Optional[str] = None

    class Config:
        extra = "ignore"


class CartVariant(BaseModel):
    """Purchasable variant of a product. Price is always in major units."""
    id: str
    title: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)
    price_formatted: Optional[str] = None
    manage_inventory: bool = False
    inventory_quantity: Optional[int] = None

    class Config:
        extra = "ignore"


class CartLineItem(BaseModel):
    """One line of a cart, unique per variant id."""
    product: CartProduct
    variant: CartVariant
    quantity: int = Field(gt=0)
    added_at: datetime = Field(default_factory=get_current_timestamp)

    @property
    def variant_id(self) -> str:
        return self.variant.id

    @property
    def unit_price(self) -> Decimal:
        return to_decimal(self.variant.price)

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    class Config:
        json_schema_extra = {
            "example": {
                "product": {"id": "p1", "title": "Parfum Vanilla 50ml"},
                "variant": {"id": "v1", "price": 10000, "manage_inventory": True},
                "quantity": 2,
                "added_at": "2025-01-01T00:00:00Z"
            }
        }
