from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from stokcer.core.database import get_database
from stokcer.models.checkout import CheckoutUser
from stokcer.services.cart_service import CartService
from stokcer.services.cart_store import CartStore, get_device_storage
from stokcer.utils.helpers import is_valid_device_id

# Security scheme
security = HTTPBearer()


async def get_db() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    return get_database()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> dict:
    """
    Dependency to get the current authenticated user.

    Access tokens are issued by the session provider, which records them in
    the sessions collection; this only resolves a token to its user.

    Raises:
        HTTPException: If token is unknown or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    session = await db.sessions.find_one({"access_token": credentials.credentials})
    if session is None or not session.get("user_id"):
        raise credentials_exception

    user_id = session["user_id"]
    if ObjectId.is_valid(str(user_id)):
        user = await db.users.find_one({"_id": ObjectId(str(user_id))})
    else:
        user = await db.users.find_one({"_id": user_id})

    if user is None:
        raise credentials_exception

    return user


def to_checkout_user(user: dict) -> CheckoutUser:
    """Build the checkout identity from a user document."""
    metadata = user.get("user_metadata") or {}
    return CheckoutUser(
        id=str(user["_id"]),
        email=user["email"],
        phone=user.get("phone"),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name")
    )


async def get_device_id(x_device_id: str = Header(..., alias="X-Device-Id")) -> str:
    """Dependency to get the device profile a cart belongs to."""
    if not is_valid_device_id(x_device_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Device-Id header"
        )
    return x_device_id


async def get_optional_device_id(
    x_device_id: Optional[str] = Header(None, alias="X-Device-Id")
) -> Optional[str]:
    if x_device_id is None:
        return None
    return await get_device_id(x_device_id)


def build_cart_service(device_id: str) -> CartService:
    return CartService(CartStore(get_device_storage(device_id)))


async def get_cart_service(device_id: str = Depends(get_device_id)) -> CartService:
    """Dependency to get the cart of the requesting device, rehydrated from storage."""
    return build_cart_service(device_id)
