from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from database.mongodb import db, ensure_indexes
from config import get_settings
from routes import auth, aircraft, engines, oil_consumption, health
from routes.error_handlers import register_exception_handlers
import logging

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the app"""
    # Startup
    await db.connect(settings.mongo_url, settings.db_name)
    await ensure_indexes(db.get_db())
    logger.info(f"Aircraft Oil API started ({settings.environment})")
    yield
    # Shutdown
    await db.disconnect()
    logger.info("Aircraft Oil API stopped")

# Create FastAPI app
app = FastAPI(
    title="Aircraft Oil API",
    description="Aircraft, engine and oil consumption tracking",
    version=settings.app_version,
    lifespan=lifespan
)

# CORS middleware; credentials are needed for the auth cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(aircraft.router)
app.include_router(engines.router)
app.include_router(oil_consumption.router)

@app.get("/")
async def root():
    return {
        "message": "Aircraft Oil API",
        "version": settings.app_version,
        "status": "running"
    }

@app.get("/api")
async def api_root():
    return {
        "message": "Aircraft Oil API",
        "version": settings.app_version,
        "endpoints": {
            "health": "/api/health",
            "auth": "/api/auth",
            "aircraft": "/api/aircraft",
            "engines": "/api/engine",
            "oilConsumptions": "/api/oil-consumptions"
        }
    }
