"""FastAPI application for the lost & found AI service."""

import contextlib
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables from .env file
load_dotenv()

from ..infrastructure import dependencies
from .endpoints import claims, health, items, jobs, matches

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Create FastAPI application
app = FastAPI(
    title="Lost & Found AI API",
    description="Item matching and ownership claim verification",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(items.router)
app.include_router(matches.router)
app.include_router(claims.router)
app.include_router(jobs.router)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the service container and resume unfinished enrichment."""
    container = dependencies.get_service_container()
    await container.startup()
    try:
        await container.get_enrichment_runner().resume_incomplete()
    except Exception as e:
        logger.warning(f"⚠️ Could not resume enrichment jobs: {e}")

    yield  # Application runs here

    await container.shutdown()


# Set lifespan handler
app.router.lifespan_context = lifespan
