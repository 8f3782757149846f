#  Site Server - Request ID Middleware
#
#  Tags each request with a short id for log correlation and echoes it
#  back in the X-Request-ID header.
#
#  Depends on: logging_config.py
#  Used by:    app.py

import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from siteserver.logging_config import set_request_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = uuid.uuid4().hex[:12]
        set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            set_request_id(None)
