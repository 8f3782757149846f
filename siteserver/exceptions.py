#  Site Server - Custom Exceptions
#
#  HttpError carries a client-facing message and an optional status code.
#  The status defaults to 500 at response time, never at construction.
#
#  Depends on: models/enums.py
#  Used by:    errors.py, static.py, middleware/body_parsing.py, routes/*

from siteserver.models.enums import ErrorCategory

NOT_FOUND_MESSAGE = "404 - Page not found."


class HttpError(Exception):
    """Request failure with a message and an optional HTTP status code."""

    def __init__(self, message: str = "", code: int | None = None, headers: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.headers = headers

    @property
    def status_code(self) -> int:
        return self.code or 500

    @property
    def category(self) -> ErrorCategory:
        status = self.status_code
        if status == 404:
            return ErrorCategory.NOT_FOUND
        if 400 <= status < 500:
            return ErrorCategory.CLIENT
        return ErrorCategory.SERVER

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code!r})"


class NotFoundError(HttpError):
    """No route, router match or static file for the request path."""

    def __init__(self, message: str = NOT_FOUND_MESSAGE):
        super().__init__(message, 404)


class BadRequestError(HttpError):
    """The request body could not be parsed."""

    def __init__(self, message: str):
        super().__init__(message, 400)


class PayloadTooLargeError(HttpError):
    """The request body exceeds the configured limit."""

    def __init__(self, message: str = "Request entity too large."):
        super().__init__(message, 413)
