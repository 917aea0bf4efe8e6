from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import AppError
from .rendering import create_templates
from .repositories import Stores, create_stores
from .routers import fate as fate_router
from .routers import pages as pages_router
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "pages", "description": "Server-rendered HTML pages."},
    {"name": "health", "description": "Liveness probe."},
    {"name": "todos", "description": "Todo list fragments for htmx."},
    {"name": "fate", "description": "Fate character sheets."},
]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for malformed path, query or form input.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=400,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map AppError subclasses onto their status code and the JSON error envelope."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)

    content = {"error": exc.error, "message": exc.message}
    if exc.detail is not None:
        content["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=content)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, stores: Optional[Stores] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: defaults to get_settings() (environment).
        stores: storage objects to inject; defaults to the backend named in settings.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    logger.info("initializing router...")

    stores = stores or create_stores(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.stores.aclose()

    app = FastAPI(
        title="Tabletop App",
        description="Todo list and Fate character sheets rendered server-side.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.stores = stores
    app.state.templates = create_templates()

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AppError, app_error_handler)

    app.include_router(pages_router.router)
    app.include_router(todos_router.router)
    app.include_router(fate_router.router)

    logger.info("router initialized (backend=%s)", settings.persistence_backend)
    return app


app = create_app()
