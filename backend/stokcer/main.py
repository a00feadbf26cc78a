from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
import logging

from stokcer.core.config import settings
from stokcer.core.database import connect_to_mongo, close_mongo_connection, ensure_indexes, get_database
from stokcer.config.payment_config import PAYMENT_MODE
from stokcer.api.routes import cart, checkout, notifications

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend API for Stokcer - device carts and hosted checkout with Midtrans and Stripe",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    logger.info(f"Starting up Stokcer backend (payment mode: {PAYMENT_MODE})...")
    await connect_to_mongo()
    try:
        await ensure_indexes(get_database())
    except PyMongoError as e:
        logger.error(f"Could not create indexes: {str(e)}")
    logger.info("Stokcer backend started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on shutdown."""
    logger.info("Shutting down Stokcer backend...")
    await close_mongo_connection()
    logger.info("Stokcer backend shut down successfully")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "stokcer-backend",
        "version": "1.0.0",
        "payment_mode": PAYMENT_MODE
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "description": "Stokcer Backend API",
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(cart.router, prefix=f"{settings.API_V1_PREFIX}/cart", tags=["Cart"])
app.include_router(checkout.router, prefix=f"{settings.API_V1_PREFIX}/checkout", tags=["Checkout"])
app.include_router(notifications.router, prefix=f"{settings.API_V1_PREFIX}/notifications", tags=["Notifications"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
