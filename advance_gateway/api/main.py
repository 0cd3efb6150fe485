"""FastAPI application factory"""

from typing import Optional

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from advance_gateway.api.errors import register_exception_handlers
from advance_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from advance_gateway.api.v1 import advances, invoices, settlements
from advance_gateway.config import settings
from advance_gateway.infrastructure.observability.logging import setup_logging
from advance_gateway.services.lifecycle import LifecycleService

# Setup structured logging
setup_logging(settings.log_level)


def create_app(lifecycle: Optional[LifecycleService] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        lifecycle: Service to serve requests with. When omitted, a SQL-backed
            service is built from settings on the first request.
    """
    app = FastAPI(
        title="Invoice Advance Gateway",
        description="Invoice financing lifecycle: upload, offer, advance, settlement",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.lifecycle = lifecycle

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(invoices.router, prefix="/v1", tags=["invoices"])
    app.include_router(advances.router, prefix="/v1", tags=["advances"])
    app.include_router(settlements.router, prefix="/v1", tags=["settlements"])

    return app


app = create_app()
