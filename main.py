from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from salamat.api.dependencies import set_chat_service
from salamat.api.unified import router as unified_router
from salamat.categories import build_default_registry
from salamat.config.database import Database, get_sessions_collection
from salamat.config.llm_config import is_llm_configured
from salamat.config.settings import settings
from salamat.services.chat_service import UnifiedChatService
from salamat.services.session_store import InMemorySessionStore, MongoSessionStore
import logging

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _build_session_store():
    """Session store for the configured backend."""
    if settings.session_backend == "mongo":
        await Database.connect_db()
        store = MongoSessionStore(get_sessions_collection(), settings.session_ttl_seconds)
        await store.ensure_indexes()
        logger.info("Using MongoDB session store")
        return store

    logger.info("Using in-memory session store")
    return InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting SalamatBot Assistant Service...")
    logger.info(f"Environment: {settings.environment}")

    try:
        store = await _build_session_store()
    except Exception as e:
        logger.error(f"Failed to initialize session store: {e}")
        raise

    registry = build_default_registry()
    logger.info(f"Registered {len(registry)} category modules")

    if not is_llm_configured():
        logger.warning("OPENROUTER_API_KEY is not set; chat turns will be rejected")

    set_chat_service(
        UnifiedChatService(registry, store, api_key=settings.openrouter_api_key)
    )

    yield

    # Shutdown
    logger.info("Shutting down SalamatBot Assistant Service...")
    set_chat_service(None)
    if settings.session_backend == "mongo":
        await Database.close_db()
        logger.info("MongoDB connection closed")


# Initialize FastAPI app
app = FastAPI(
    title="SalamatBot - Persian Medical Assistant",
    description="Classifies Persian medical messages into six intents and routes them to category modules, including a symptom triage interview.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(unified_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    dependencies = {
        "llm": "configured" if is_llm_configured() else "not configured",
        "session_backend": settings.session_backend,
    }

    if settings.session_backend == "mongo":
        try:
            await Database.ping()
            dependencies["mongodb"] = "connected"
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            dependencies["mongodb"] = f"error: {str(e)}"

    return {
        "status": "ok",
        "service": settings.service_name,
        "version": "1.0.0",
        "dependencies": dependencies,
    }


@app.get("/")
async def root():
    return {
        "message": "SalamatBot - Persian Medical Assistant Service",
        "description": "Intent classification and symptom triage for Persian medical questions",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.environment == "development",
    )
