from __future__ import annotations

from typing import Optional

from fastapi import FastAPI

from .api.body_parser import JSONBodyParserMiddleware
from .api.router import router as api_router
from .core.config import Settings, get_settings
from .observability import otel
from .observability.logging import setup_logging
from .observability.middleware import TraceLoggingMiddleware


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    - Sets up JSON logging with trace/span IDs
    - Configures OpenTelemetry tracing when enabled
    - Attaches HTTP middlewares (request logging, JSON body parsing)
    - Registers the /status route; docs and OpenAPI routes stay off
    """
    settings = settings or get_settings()
    app_settings = settings.app

    setup_logging(app_settings.log_level)

    app = FastAPI(
        title=app_settings.name,
        version="0.1.0",
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )

    otel.init_otel(app, settings)

    # Last added runs first: requests are logged before the body is parsed.
    app.add_middleware(JSONBodyParserMiddleware, limit=app_settings.json_body_limit)
    app.add_middleware(TraceLoggingMiddleware)

    app.include_router(api_router)

    return app


app = create_app()
