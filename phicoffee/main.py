# phicoffee/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from phicoffee.core.config import get_settings
from phicoffee.models.catalog import get_catalog, validate_slot_mapping

# Routers
from phicoffee.routers.catalog import router as catalog_router
from phicoffee.routers.orders import router as orders_router
from phicoffee.routers.feedback import router as feedback_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify every catalog item maps to a sheet slot, so an unmapped
        product stops the app instead of losing quantities at write time.

    Shutdown:
      - No special cleanup needed; upstream clients are plain HTTP.
    """
    logger.info("🔄 Startup: Validating catalog slot mapping...")
    try:
        validate_slot_mapping(get_catalog())
        logger.info("✅ Startup: %d catalog items mapped.", len(get_catalog()))
    except Exception as e:
        logger.error(f"❌ Startup: catalog validation FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Phicoffee Ordering API",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router, prefix=settings.API_PREFIX)
app.include_router(orders_router, prefix=settings.API_PREFIX)
app.include_router(feedback_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "phicoffee-backend"}
