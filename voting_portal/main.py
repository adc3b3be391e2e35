"""FastAPI application entrypoint."""
from __future__ import annotations

from fastapi import FastAPI

from voting_portal.api.routes import register_routes
from voting_portal.core.config import Settings, get_settings
from voting_portal.core.logging import configure_logging
from voting_portal.db.store import VotingStore
from voting_portal.obs import AuditMiddleware, PrometheusMiddleware, metrics_router
from voting_portal.services.container import build_services
from voting_portal.services.credentials import Clock, utcnow
from voting_portal.services.delivery import CodeDelivery


def create_application(
    settings: Settings | None = None,
    *,
    store: VotingStore | None = None,
    delivery: CodeDelivery | None = None,
    clock: Clock = utcnow,
) -> FastAPI:
    """Application factory used by ASGI servers and tests."""
    configure_logging()
    settings = settings or get_settings()

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
    )
    application.state.services = build_services(settings, store=store, delivery=delivery, clock=clock)

    if settings.enable_audit_log:
        application.add_middleware(AuditMiddleware)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    register_routes(application)

    return application
