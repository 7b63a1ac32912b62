"""
Opinion IQ Backend - FastAPI Application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from opinion_iq.config import settings
from opinion_iq.api.analyze import router as analyze_router
from opinion_iq.services.opinion_client import get_opinion_client, close_opinion_client

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info(f"🚀 Starting {settings.APP_NAME}...")
    logger.info(f"📊 Environment: {settings.ENVIRONMENT}")

    client = get_opinion_client()
    logger.info(f"OpenAPI base: {client.base_url}")
    if not client.has_key:
        logger.warning("⚠️ Missing OPINION_API_KEY - /api/analyze will refuse requests")
    if not client.base_url:
        logger.warning("⚠️ Missing OPINION_API_BASE")

    yield

    await close_opinion_client()
    logger.info("👋 Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Opinion IQ - trade / wait / avoid verdicts for opinion.trade markets",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze_router)

# Browser UI, when shipped alongside the API
static_dir = Path(settings.STATIC_DIR)
if static_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    logger.info(f"✅ Serving UI from {static_dir}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development"
    )
