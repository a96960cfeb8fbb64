# promguard/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from promguard.config import Settings, get_settings
from promguard.metadata import MetadataProvider
from promguard.middleware.request_id import RequestIDMiddleware
from promguard.providers import build_guardrails, build_provider
from promguard.routes import health, metrics, validate
from promguard.telemetry.errors import register_error_handlers
from promguard.telemetry.logging import configure_root_logging

log = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    provider: Optional[MetadataProvider] = None,
) -> FastAPI:
    """Build the service. Guardrail config errors fail here, before serving."""
    s = settings or get_settings()
    configure_root_logging(s.LOG_LEVEL, json_lines=s.LOG_JSON)

    app = FastAPI(title=s.APP_NAME, version=s.VERSION)
    app.state.settings = s
    app.state.guardrails = build_guardrails(s)
    app.state.metadata_provider = provider or build_provider(s)

    register_error_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(validate.router)
    if s.METRICS_ENABLED:
        app.include_router(metrics.router)

    log.info(
        "guardrails service configured",
        extra={
            "backend": s.PROMETHEUS_URL,
            "guardrails": app.state.guardrails.enabled_rules() if app.state.guardrails else [],
        },
    )
    return app
