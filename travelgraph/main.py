"""
FastAPI application entry point.

Assembles the FastAPI app with the session router and one SessionEngine.
"""

import logging
import sys
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from travelgraph.graph.config import get_config
from travelgraph.graph.context import EngineContext
from travelgraph.graph.engine import SessionEngine
from travelgraph.graph.orchestrator_api import router as sessions_router
from travelgraph.shared.llm.client import OpenAIChatModel


# ============================================================================
# Logging configuration (single source of truth for all stages)
# ============================================================================
LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s"
)

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,  # Override any prior basicConfig calls
)

# Quiet noisy third-party loggers
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)


def build_default_engine() -> SessionEngine:
    """Build the process-wide engine backed by the OpenAI model."""
    config = get_config()
    model = OpenAIChatModel(
        model=config.model,
        timeout=config.llm_timeout,
        max_retries=config.max_retries,
        retry_min_wait=config.retry_min_wait,
        retry_max_wait=config.retry_max_wait,
    )
    return SessionEngine(EngineContext(model=model, config=config))


def create_app(engine: Optional[SessionEngine] = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        engine: Session engine to serve (the OpenAI-backed default if not provided)
    """
    app = FastAPI(
        title="travelgraph",
        description="Conversational trip-orchestration engine built with LangGraph",
        version="0.1.0",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.engine = engine if engine is not None else build_default_engine()
    app.include_router(sessions_router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "travelgraph",
            "version": "0.1.0",
            "stages": {
                "orchestrator": {"status": "active"},
                "specialists": {"status": "active", "names": ["transportation", "destination", "food"]},
                "interaction": {"status": "active"},
            },
            "endpoints": "/api/sessions",
        }

    @app.get("/health")
    async def health():
        """Global health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
