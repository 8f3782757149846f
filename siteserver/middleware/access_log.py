#  Site Server - Access Log Middleware
#
#  One REQ line per request: [<client ip>]-[<method>]-[<url>].
#  Side effect only, the request passes through untouched.
#
#  Depends on: logging_config.py
#  Used by:    app.py

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from siteserver.logging_config import Logs


def format_access_line(request: Request) -> str:
    ip = request.client.host if request.client else "-"
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return f"[{ip}]-[{request.method}]-[{url}]"


class AccessLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, logs: Logs):
        super().__init__(app)
        self.logs = logs

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        self.logs.req(format_access_line(request))
        return await call_next(request)
