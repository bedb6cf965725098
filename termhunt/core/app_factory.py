"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from termhunt.api.routes import csrf_router, health_router
from termhunt.core.config import settings
from termhunt.core.exception_handlers import setup_exception_handlers
from termhunt.core.logging import configure_logging
from termhunt.core.middleware import request_id_middleware, security_headers_middleware
from termhunt.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Termhunt Security API",
        description=(
            "Session-scoped CSRF tokens and attempt rate limiting for Termhunt, "
            "the platform for discovering, submitting and voting on terminal apps."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Last registered runs outermost, so request ids cover the header middleware
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(csrf_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
