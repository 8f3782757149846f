#  Site Server - Error Path
#
#  Two stages every per-request error passes exactly once:
#    1. log_error:    log the message, hand the error on unchanged
#    2. render_error: JSON {"message": ...} with the error's status
#  ErrorHandlerMiddleware applies them to anything raised outside the
#  router; register_error_handlers covers errors raised inside it.
#
#  Depends on: exceptions.py, logging_config.py, models/*
#  Used by:    app.py, static.py

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from siteserver.exceptions import HttpError, NOT_FOUND_MESSAGE
from siteserver.logging_config import Logs
from siteserver.models.enums import ErrorCategory
from siteserver.models.schemas import ErrorOut

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred!"


def to_http_error(exc: Exception) -> HttpError:
    """Normalize anything raised while handling a request into an HttpError."""
    if isinstance(exc, HttpError):
        return exc
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == 404:
            return HttpError(NOT_FOUND_MESSAGE, 404)
        return HttpError(str(exc.detail), exc.status_code, headers=exc.headers)
    if isinstance(exc, RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(part) for part in first.get("loc", ()))
            return HttpError(f"Invalid request: {loc}: {first.get('msg', 'invalid value')}", 422)
        return HttpError("Invalid request.", 422)
    # Never echo internals of unexpected failures
    return HttpError("", 500)


def log_error(logs: Logs, error: HttpError, cause: BaseException | None = None) -> HttpError:
    """Stage 1: record the failure and return it untouched."""
    if error.category == ErrorCategory.SERVER and cause is not None:
        logs.error("Error: %s", error.message or repr(cause), exc_info=cause)
    else:
        logs.error("Error: %s", error.message)
    return error


def render_error(error: HttpError) -> JSONResponse:
    """Stage 2: build the client-facing response."""
    body = ErrorOut(message=error.message or UNKNOWN_ERROR_MESSAGE)
    return JSONResponse(
        status_code=error.status_code,
        content=body.model_dump(),
        headers=error.headers,
    )


def handle_error(logs: Logs, exc: Exception) -> JSONResponse:
    error = to_http_error(exc)
    return render_error(log_error(logs, error, cause=exc))


def register_error_handlers(app: FastAPI, logs: Logs) -> None:
    """Route router-level errors through the same two stages."""

    @app.exception_handler(HttpError)
    async def http_error_handler(request: Request, exc: HttpError):
        return handle_error(logs, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return handle_error(logs, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return handle_error(logs, exc)


class ErrorHandlerMiddleware:
    """Turn exceptions from the layers below into JSON error responses.

    Once the response has started, a second one cannot be written: the
    exception is re-raised to the server instead.
    """

    def __init__(self, app: ASGIApp, logs: Logs):
        self.app = app
        self.logs = logs

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                self.logs.error("Error after response started: %s", exc)
                raise
            response = handle_error(self.logs, exc)
            await response(scope, receive, send)
