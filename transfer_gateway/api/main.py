"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from transfer_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from transfer_gateway.api.v1 import wizard, templates
from transfer_gateway.domain.exceptions import WizardInvariantError
from transfer_gateway.infrastructure.database.models import Base
from transfer_gateway.infrastructure.database.session import engine
from transfer_gateway.infrastructure.observability.logging import setup_logging
from transfer_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Transfer Gateway",
        description="Guided funds-transfer wizard service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # A broken wizard contract is a client defect: report it, don't absorb it
    @app.exception_handler(WizardInvariantError)
    async def wizard_invariant_handler(request: Request, exc: WizardInvariantError):
        logging.warning(
            f"Wizard contract violation: {exc}",
            extra={"request_id": getattr(request.state, "request_id", "unknown")},
        )
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(wizard.router, prefix="/v1", tags=["wizard"])
    app.include_router(templates.router, prefix="/v1", tags=["templates"])

    return app


app = create_app()
