"""
VoxPlan proxy application.

``create_app()`` assembles the proxy with CORS, error handlers, routers,
and the health endpoint. The module-level ``app`` instance allows
``uvicorn voxplan.api.app:app --reload``.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voxplan.api.middleware.error_handler import register_error_handlers
from voxplan.api.routes import planning, transcription
from voxplan.core.config import get_settings
from voxplan.core.models import HealthResponse


def create_app() -> FastAPI:
    """Create the proxy app; CORS origins come from settings."""
    settings = get_settings()

    app = FastAPI(
        title="VoxPlan",
        description="Transcription proxy and treatment-plan relay for voice notes.",
        version="0.1.0",
    )

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Error handlers --
    register_error_handlers(app)

    # -- Health check (root-level, not under /api) --
    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(timestamp=datetime.now(UTC))

    # -- REST routes --
    app.include_router(transcription.router, prefix="/api")
    app.include_router(planning.router, prefix="/api")

    return app


app = create_app()


def main() -> None:
    """Run the proxy with uvicorn using host/port from settings."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "voxplan.api.app:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )
