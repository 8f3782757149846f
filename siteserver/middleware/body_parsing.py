#  Site Server - Body Parsing Middleware
#
#  Parses JSON and URL-encoded request bodies into request.state.body.
#  URL-encoded parsing is flat: "a[b]=1" stays the literal key "a[b]".
#  The raw bytes are replayed so handlers can still read the body.
#
#  Depends on: config.py, exceptions.py
#  Used by:    app.py

import json
from urllib.parse import parse_qsl

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from siteserver.config import DEFAULT_BODY_LIMIT_BYTES
from siteserver.exceptions import BadRequestError, PayloadTooLargeError

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"


def parse_json_body(body: bytes):
    if not body.strip():
        return {}
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Malformed JSON body.") from None
    # Strict: only objects and arrays at the top level
    if not isinstance(parsed, (dict, list)):
        raise BadRequestError("Malformed JSON body.")
    return parsed


def parse_form_body(body: bytes) -> dict[str, str | list[str]]:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        raise BadRequestError("Malformed URL-encoded body.") from None

    parsed: dict[str, str | list[str]] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        if key not in parsed:
            parsed[key] = value
        elif isinstance(parsed[key], list):
            parsed[key].append(value)
        else:
            parsed[key] = [parsed[key], value]
    return parsed


_PARSERS = {
    JSON_MEDIA_TYPE: parse_json_body,
    FORM_MEDIA_TYPE: parse_form_body,
}


class BodyParsingMiddleware:
    """Parse JSON and form bodies up front so errors reach the error path."""

    def __init__(self, app: ASGIApp, limit_bytes: int = DEFAULT_BODY_LIMIT_BYTES):
        self.app = app
        self.limit_bytes = limit_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        media_type = headers.get("content-type", "").split(";")[0].strip().lower()
        parser = _PARSERS.get(media_type)
        if parser is None:
            await self.app(scope, receive, send)
            return

        declared = headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.limit_bytes:
            raise PayloadTooLargeError()

        body = await self._read_body(receive)
        scope.setdefault("state", {})["body"] = parser(body)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _read_body(self, receive: Receive) -> bytes:
        chunks = []
        size = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            size += len(chunk)
            if size > self.limit_bytes:
                raise PayloadTooLargeError()
            chunks.append(chunk)
            more_body = message.get("more_body", False)
        return b"".join(chunks)
