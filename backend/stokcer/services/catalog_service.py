from typing import Tuple

from bson import ObjectId
from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from stokcer.models.cart import CartProduct, CartVariant
from stokcer.models.checkout import CheckoutPlan
from stokcer.services.cart_migrations import migrate_legacy_variant


def _id_query(identifier: str) -> dict:
    """Catalog documents may be keyed by ObjectId or by a plain string id."""
    if ObjectId.is_valid(identifier):
        return {"_id": {"$in": [ObjectId(identifier), identifier]}}
    return {"_id": identifier}


class CatalogService:
    """Read-only lookups against the product catalog and plan list."""

    @staticmethod
    async def get_variant(
        product_id: str,
        variant_id: str,
        db: AsyncIOMotorDatabase
    ) -> Tuple[CartProduct, CartVariant, int]:
        """
        Resolve a product variant and its available stock.

        Returns:
            Tuple of (product, variant, available_quantity)
        """
        product = await db.products.find_one(_id_query(product_id))

        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )

        variant_doc = next(
            (v for v in product.get("variants", []) if str(v.get("id")) == variant_id),
            None
        )
        if variant_doc is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Variant not found"
            )

        variant_doc, _ = migrate_legacy_variant({**variant_doc, "id": str(variant_doc["id"])})

        images = product.get("images") or []
        cart_product = CartProduct(
            id=str(product["_id"]),
            title=product.get("title"),
            image=product.get("image") or (images[0] if images else None)
        )
        variant = CartVariant.model_validate(variant_doc)

        return cart_product, variant, variant.inventory_quantity or 0

    @staticmethod
    async def get_plan(plan_id: str, db: AsyncIOMotorDatabase) -> CheckoutPlan:
        """Resolve a paid subscription plan."""
        plan = await db.subscription_plans.find_one(_id_query(plan_id))

        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Plan not found"
            )

        if not plan.get("price"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The free plan does not need a checkout"
            )

        return CheckoutPlan(
            id=str(plan["_id"]),
            name=plan["name"],
            price=plan["price"],
            interval=plan.get("interval")
        )
