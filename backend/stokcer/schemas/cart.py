from typing import List, Optional
from pydantic import BaseModel, Field


class AddToCartRequest(BaseModel):
    """Schema for adding a product variant to cart."""
    product_id: str
    variant_id: str
    quantity: int = Field(default=1, gt=0)

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "p1",
                "variant_id": "v1",
                "quantity": 2
            }
        }


class UpdateCartItemRequest(BaseModel):
    """Schema for updating cart item quantity."""
    quantity: int = Field(gt=0)

    class Config:
        json_schema_extra = {
            "example": {
                "quantity": 3
            }
        }


class CartItemResponse(BaseModel):
    """Schema for cart item response."""
    product_id: str
    variant_id: str
    title: Optional[str] = None
    variant_title: Optional[str] = None
    image: Optional[str] = None
    quantity: int
    unit_price: float
    price_formatted: str
    subtotal: float
    manage_inventory: bool = False


class CartResponse(BaseModel):
    """Schema for cart response."""
    items: List[CartItemResponse]
    total: str
    total_amount: float
    count: int
    is_open: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {
                        "product_id": "p1",
                        "variant_id": "v1",
                        "title": "Parfum Vanilla 50ml",
                        "quantity": 2,
                        "unit_price": 10000,
                        "price_formatted": "Rp 10.000",
                        "subtotal": 20000,
                        "manage_inventory": True
                    }
                ],
                "total": "Rp 20.000",
                "total_amount": 20000,
                "count": 2,
                "is_open": True
            }
        }
