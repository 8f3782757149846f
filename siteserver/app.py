#  Site Server - FastAPI Application
#
#  Builds the app: middleware chain, API router under the prefix, static
#  file fallback and the error path. create_app() takes every dependency
#  explicitly; the module-level `app` is built from the DI container.
#
#  Request flow (outermost first):
#    RequestID -> CORS headers -> access log -> error handler
#      -> body parsing -> API router | static files | 404
#
#  Depends on: config.py, container.py, errors.py, static.py, middleware/*, routes/api.py
#  Used by:    run.py

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import FileResponse
from starlette.concurrency import run_in_threadpool

from siteserver.config import Settings
from siteserver.container import Container
from siteserver.errors import ErrorHandlerMiddleware, log_error, register_error_handlers, render_error
from siteserver.exceptions import NotFoundError
from siteserver.lifecycle import LifecycleManager
from siteserver.logging_config import Logs
from siteserver.middleware.access_log import AccessLogMiddleware
from siteserver.middleware.body_parsing import BodyParsingMiddleware
from siteserver.middleware.cors import CORSHeadersMiddleware
from siteserver.middleware.request_id import RequestIDMiddleware
from siteserver.routes.api import router as default_api_router
from siteserver.static import StaticResolution, StaticResolver

STATIC_METHODS = ("GET", "HEAD")
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _build_lifespan(logs: Logs):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logs.info("Site Server starting...")
        yield
        logs.info("Site Server shutting down")

    return lifespan


def create_app(
    settings: Settings,
    logs: Logs,
    api_router: APIRouter = default_api_router,
    static_resolver: StaticResolver | None = None,
    lifecycle: LifecycleManager | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Site Server",
        version="0.1.0",
        lifespan=_build_lifespan(logs),
    )
    app.state.settings = settings
    app.state.lifecycle = lifecycle

    register_error_handlers(app, logs)

    # API delegation
    app.include_router(api_router, prefix=settings.api_prefix)

    # Static files, then 404, for everything the router didn't take
    resolver = static_resolver or StaticResolver.from_settings(settings)

    @app.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def static_or_not_found(request: Request, full_path: str):
        if request.method in STATIC_METHODS:
            resolution = await run_in_threadpool(resolver.resolve, full_path)
        else:
            resolution = StaticResolution(error=NotFoundError())
        if resolution.found:
            return FileResponse(resolution.path)
        return render_error(log_error(logs, resolution.error))

    # Added innermost first: the last one added sees the request first
    app.add_middleware(BodyParsingMiddleware, limit_bytes=settings.body_limit_bytes)
    app.add_middleware(ErrorHandlerMiddleware, logs=logs)
    app.add_middleware(AccessLogMiddleware, logs=logs)
    app.add_middleware(
        CORSHeadersMiddleware,
        allow_headers=settings.cors_allow_headers,
        allow_methods=settings.cors_allow_methods,
    )
    app.add_middleware(RequestIDMiddleware)

    return app


# Create and wire the DI container
container = Container()

app = create_app(
    settings=container.settings(),
    logs=container.logs(),
    static_resolver=container.static_resolver(),
    lifecycle=container.lifecycle(),
)
