"""
ytfetch - FastAPI application entry point.

Resolves YouTube video references into stream descriptors and relays media
bytes through the chunked transfer engine.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .client import YouTubeClient
from .config import get_settings
from .routes.api import router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# httpx logs every request URL, signed query strings included, at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build the shared client and close it on shutdown."""
    logger.info("ytfetch starting up...")

    settings = get_settings()
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Chunk size: {settings.chunk_size} bytes")
    logger.info(f"Player cache TTL: {settings.player_cache_ttl}s")

    app.state.client = YouTubeClient()

    yield

    await app.state.client.close()
    logger.info("ytfetch shutting down...")


app = FastAPI(
    title="ytfetch",
    description=(
        "Resolves YouTube video references into playable stream descriptors "
        "and streams media with sequential ranged requests."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(router, prefix="/api")


@app.get("/", tags=["root"])
async def root():
    return {
        "name": "ytfetch",
        "version": VERSION,
        "docs": "/docs",
        "endpoints": {
            "video": "/api/video",
            "formats": "/api/formats",
            "stream": "/api/stream",
            "health": "/api/health",
        },
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ytfetch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
