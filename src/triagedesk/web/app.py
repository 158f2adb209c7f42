"""FastAPI application factory: mounts the review UI and API routes."""

from __future__ import annotations

from contextlib import closing
from functools import partial

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from triagedesk import __version__
from triagedesk.config import Config, load_config
from triagedesk.database import get_db, init_db
from triagedesk.errors import ErrorKind, TriageError
from triagedesk.log import configure_logging, get_logger
from triagedesk.services import open_services
from triagedesk.web.admin import create_admin
from triagedesk.web.db import database_url, make_engine

logger = get_logger(__name__)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TriageError)
    async def _triage_error(request: Request, exc: TriageError):
        if exc.kind.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(exc.to_dict(), status_code=exc.kind.http_status)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(
            {"error": detail or "Invalid request", "kind": ErrorKind.INVALID_INPUT.value},
            status_code=ErrorKind.INVALID_INPUT.http_status,
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal Server Error"}, status_code=500)


def create_app(config: Config | None = None, services_factory=None) -> FastAPI:
    """Build the FastAPI application with admin and API.

    ``services_factory`` is a zero-argument callable returning a context
    manager that yields a Services graph; by default each request opens
    its own database connection.
    """
    if config is None:
        config = load_config()
    configure_logging(config.logging.level)

    if services_factory is None:
        with closing(get_db(config)) as conn:
            init_db(conn)
        services_factory = partial(open_services, config)

    app = FastAPI(title="TriageDesk", version=__version__)
    app.state.config = config
    app.state.services_factory = services_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    admin = create_admin(make_engine(database_url(config)))
    admin.mount_to(app)

    # Import and mount API router
    from triagedesk.web.api import router as api_router
    app.include_router(api_router, prefix="/api")

    # Redirect root to admin
    @app.get("/")
    async def _root():
        return RedirectResponse(url="/admin")

    return app
