from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from assistant.api.ask import router as ask_router
from assistant.api.health import router as health_router
from assistant.core.config import get_settings
from assistant.services.llm import close_clients
from assistant.services.retrieval import StaticRetriever
from assistant.utils.logging import get_logger, setup_logging

settings = get_settings()
setup_logging(settings.log_level.upper())
logger = get_logger("assistant.main")

app = FastAPI(
    title=settings.app_name,
    description="Retrieval-augmented workspace assistant",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Deployments replace this with a retriever backed by their search index.
app.state.retriever = StaticRetriever([])

app.include_router(ask_router, prefix="/api/v1")   # /api/v1/ask
app.include_router(health_router, prefix="/api")    # /api/health


@app.on_event("startup")
async def on_startup():
    logger.info(
        "Starting %s (ai_enabled=%s, deep_search=%s)",
        settings.app_name, settings.ai_enabled, settings.deep_search_enabled,
    )


@app.on_event("shutdown")
async def on_shutdown():
    """Cleanup on shutdown."""
    await close_clients()
    logger.info("[OK] Shutdown complete")
