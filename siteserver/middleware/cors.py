#  Site Server - CORS Headers Middleware
#
#  Stamps permissive CORS headers on every response, error responses
#  included. Unlike Starlette's CORSMiddleware nothing depends on the
#  request carrying an Origin header or being a preflight.
#
#  Depends on: config.py
#  Used by:    app.py

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from siteserver.config import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS


def build_cors_headers(
    allow_headers: tuple[str, ...] = CORS_ALLOW_HEADERS,
    allow_methods: tuple[str, ...] = CORS_ALLOW_METHODS,
) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": ", ".join(allow_headers),
        "Access-Control-Allow-Methods": ", ".join(allow_methods),
    }


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        allow_headers: tuple[str, ...] = CORS_ALLOW_HEADERS,
        allow_methods: tuple[str, ...] = CORS_ALLOW_METHODS,
    ):
        super().__init__(app)
        self.cors_headers = build_cors_headers(allow_headers, allow_methods)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header_name, header_value in self.cors_headers.items():
            response.headers[header_name] = header_value
        return response
