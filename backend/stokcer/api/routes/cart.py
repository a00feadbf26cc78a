from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from stokcer.api.deps import get_db, get_cart_service
from stokcer.core.exceptions import InsufficientStockError
from stokcer.schemas.cart import (
    AddToCartRequest,
    UpdateCartItemRequest,
    CartItemResponse,
    CartResponse
)
from stokcer.services.cart_service import CartService
from stokcer.services.catalog_service import CatalogService
from stokcer.utils.money import to_float

router = APIRouter()


def cart_response(cart: CartService) -> CartResponse:
    """Serialize a cart with display prices."""
    return CartResponse(
        items=[
            CartItemResponse(
                product_id=item.product.id,
                variant_id=item.variant_id,
                title=item.product.title,
                variant_title=item.variant.title,
                image=item.product.image,
                quantity=item.quantity,
                unit_price=item.variant.price,
                price_formatted=cart.format_price(item.unit_price),
                subtotal=to_float(item.subtotal),
                manage_inventory=item.variant.manage_inventory
            )
            for item in cart.items
        ],
        total=cart.total(),
        total_amount=to_float(cart.subtotal()),
        count=cart.count(),
        is_open=cart.is_open
    )


@router.get("", response_model=CartResponse)
async def get_cart(cart: CartService = Depends(get_cart_service)):
    """
    Get the cart of the requesting device.

    A missing or unreadable stored cart is returned as an empty cart.
    """
    return cart_response(cart)


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    request: AddToCartRequest,
    cart: CartService = Depends(get_cart_service),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Add a product variant to the cart.

    Validates:
    - Product and variant exist
    - For inventory-managed variants, quantity in cart stays within stock

    If the variant is already in the cart, increases its quantity.
    """
    product, variant, available = await CatalogService.get_variant(
        request.product_id, request.variant_id, db
    )

    try:
        await cart.add_item(product, variant, request.quantity, available)
    except InsufficientStockError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    return cart_response(cart)


@router.put("/items/{variant_id}", response_model=CartResponse)
async def update_cart_item(
    variant_id: str,
    request: UpdateCartItemRequest,
    cart: CartService = Depends(get_cart_service)
):
    """
    Update the quantity of a cart line.

    Stock is not re-checked here.
    """
    if cart.get_item(variant_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found in cart"
        )

    cart.update_quantity(variant_id, request.quantity)
    return cart_response(cart)


@router.delete("/items/{variant_id}", response_model=CartResponse)
async def remove_from_cart(
    variant_id: str,
    cart: CartService = Depends(get_cart_service)
):
    """
    Remove a line from the cart. Removing an absent line is not an error.
    """
    cart.remove_item(variant_id)
    return cart_response(cart)


@router.delete("", response_model=CartResponse)
async def clear_cart(cart: CartService = Depends(get_cart_service)):
    """
    Clear all items from the cart.
    """
    cart.clear()
    return cart_response(cart)
