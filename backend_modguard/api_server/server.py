"""
FastAPI server wrapping the decision engine.

The engine is created once in the lifespan and stored on app.state; routes
reach it through the get_engine dependency. Config via env (see config.env).
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend_modguard import __version__
from backend_modguard.api_server.routes import router
from backend_modguard.decisions.engine import DecisionEngine
from backend_modguard.modguard_logging import get_logger

logger = get_logger(__name__)


def create_app(engine: DecisionEngine | None = None) -> FastAPI:
    """
    Build the ASGI app. Pass an engine to serve a pre-built one (tests);
    otherwise the lifespan builds one from get_settings().
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.engine = engine or DecisionEngine()
        status = app.state.engine.system_status()
        logger.info("api_engine_started", callable_sources=status["callable_sources"])
        yield
        await app.state.engine.aclose()
        logger.info("api_engine_stopped", total_assessments=app.state.engine.total_assessments)

    app = FastAPI(
        title="ModGuard Decision API",
        description="Multi-source toxicity scoring with evasion normalization and escalation.",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    return app


app = create_app()
