"""
HR Platform API - mounts the employee and survey routers and exposes event bus diagnostics.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Callable

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

import config
from employee.entrypoints import employee_api
from shared.bootstrap import Container, bootstrap
from shared.domain.errors import DomainError
from shared.entrypoints.dependencies import get_container
from survey.entrypoints import survey_api

logging.basicConfig(
    level=config.get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def create_app(container_factory: Callable[[], Container] = bootstrap) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container_factory()
        logger.info("HR platform API started")
        yield
        await app.state.container.shutdown()
        logger.info("HR platform API stopped")

    app = FastAPI(
        title="HR Platform API",
        description="Employee management and survey domain core",
        version="1.0.0",
        lifespan=lifespan,
    )

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error(f"Domain error on {request.url.path}: {exc.message}")
        else:
            logger.info(f"Rejected {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "errors": getattr(exc, "errors", [])},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "hr-platform-api",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/v1/events/metrics")
    async def event_metrics(container: Container = Depends(get_container)):
        return {
            event_type: {**asdict(metrics), "success_rate": metrics.success_rate}
            for event_type, metrics in container.bus.get_metrics().items()
        }

    @app.get("/api/v1/events/history")
    async def event_history(limit: int = 50, container: Container = Depends(get_container)):
        return [
            {
                "id": event.id,
                "type": event.type,
                "source": event.source,
                "organization_id": event.organization_id,
                "user_id": event.user_id,
                "timestamp": event.timestamp,
            }
            for event in container.bus.get_event_history(limit)
        ]

    @app.get("/api/v1/events/subscriptions")
    async def event_subscriptions(container: Container = Depends(get_container)):
        return {
            event_type: [
                {"subscription_id": s.subscription_id, "subscriber_id": s.subscriber_id, "priority": s.priority}
                for s in subscriptions
            ]
            for event_type, subscriptions in container.bus.get_subscriptions().items()
        }

    @app.get("/api/v1/events/failed")
    async def failed_deliveries(limit: int = 50, container: Container = Depends(get_container)):
        return [
            {
                "event_id": failure.event_id,
                "event_type": failure.event_type,
                "subscriber_id": failure.subscriber_id,
                "error": repr(failure.cause),
            }
            for failure in container.bus.get_failed_deliveries(limit)
        ]

    app.include_router(employee_api.router)
    app.include_router(survey_api.router)
    return app


app = create_app()
