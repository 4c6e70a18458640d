# Main application entry point

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
import uvicorn

from fs2bq import __version__
from fs2bq.api.routes import router
from fs2bq.common.logging_config import setup_logging
from fs2bq.common.metrics import get_metrics, get_metrics_content_type
from fs2bq.common.middleware import RequestTrackingMiddleware
from fs2bq.config.settings import get_settings
from fs2bq.export import ExportOrchestrator, create_orchestrator

settings = get_settings()
logger = logging.getLogger(__name__)


def create_app(orchestrator: Optional[ExportOrchestrator] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        orchestrator: Orchestrator to serve; built from settings at
            startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if orchestrator is None:
            app.state.orchestrator = create_orchestrator(settings)
            logger.info(
                f"Exporter ready: {settings.source_backend} -> {settings.warehouse_backend}")
        else:
            app.state.orchestrator = orchestrator

        yield

        # Only close what this app created
        if orchestrator is None:
            await app.state.orchestrator.close()

    app = FastAPI(
        title="Firestore to BigQuery Export API",
        description="Infer table schemas from document collections and copy documents into them",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(RequestTrackingMiddleware)
    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/live")
    async def liveness():
        return {"status": "alive"}

    @app.get("/metrics")
    async def metrics():
        if not settings.metrics_enabled:
            return Response(status_code=404)
        return Response(content=get_metrics(), media_type=get_metrics_content_type())

    return app


app = create_app()

if __name__ == "__main__":
    setup_logging(settings.log_level, json_format=settings.json_logs)
    uvicorn.run(
        "fs2bq.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
    )
