import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from stokcer.core.config import settings

logger = logging.getLogger(__name__)

# Global MongoDB client
_client: AsyncIOMotorClient = None
_database: AsyncIOMotorDatabase = None


async def connect_to_mongo():
    """Connect to MongoDB."""
    global _client, _database
    _client = AsyncIOMotorClient(settings.MONGODB_URI)
    _database = _client[settings.MONGODB_DB_NAME]
    logger.info(f"Connected to MongoDB: {settings.MONGODB_DB_NAME}")


async def close_mongo_connection():
    """Close MongoDB connection."""
    global _client
    if _client:
        _client.close()
        logger.info("Closed MongoDB connection")


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """Create the indexes the transaction log relies on."""
    # One checkout session per order id; the reconciler only ever updates by this key
    await db.checkout_sessions.create_index("order_id", unique=True)
    await db.checkout_sessions.create_index([("user_id", 1), ("created_at", -1)])
    await db.notification_logs.create_index([("user_id", 1), ("created_at", -1)])


def get_database() -> AsyncIOMotorDatabase:
    """Get MongoDB database instance."""
    return _database
