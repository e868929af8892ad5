"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finsight.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finsight.api.v1 import budget, forecast, insights, portfolio
from finsight.infrastructure.observability.logging import setup_logging
from finsight.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finsight Insight Engine",
        description="Cash-flow forecast, budget analysis and portfolio advice over caller-supplied snapshots",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(budget.router, prefix="/v1", tags=["budget"])
    app.include_router(portfolio.router, prefix="/v1", tags=["portfolio"])
    app.include_router(insights.router, prefix="/v1", tags=["insights"])

    return app


app = create_app()
