from tender_system.core.config import get_settings
from tender_system.core.logging import configure_logging
from tender_system.core.middleware import RequestIdMiddleware
from tender_system.api.errors import register_exception_handlers
from tender_system.api.v1.router import v1_router

from fastapi import FastAPI


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
    )
    # Middleware: Request ID
    app.add_middleware(RequestIdMiddleware, header_name=settings.request_id_header)

    register_exception_handlers(app)

    # API
    app.include_router(v1_router, prefix=settings.api_prefix)

    return app


app = create_app()
