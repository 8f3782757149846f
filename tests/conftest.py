#  Site Server - Test Fixtures
#
#  Shared fixtures for the test suite.
#  Apps are built with create_app() from explicit settings pointing at a
#  temporary static root, so nothing touches the project directory.
#
#  Depends on: siteserver/app.py, siteserver/config.py, siteserver/logging_config.py
#  Used by:    all test files

import asyncio
import logging

import pytest
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from siteserver.config import Settings
from siteserver.exceptions import HttpError
from siteserver.logging_config import Logs


# ---------------------------------------------------------------------------
# Settings / static root
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Settings rooted at a temp dir with a short grace period."""
    return Settings(
        base_dir=tmp_path,
        log_dir=tmp_path / "logs",
        shutdown_grace_seconds=0.05,
        log_format="text",
    )


@pytest.fixture
def static_root(settings):
    """Populate build/, build/js and build/css under the settings base dir."""
    build = settings.base_dir / "build"
    (build / "js").mkdir(parents=True)
    (build / "css").mkdir(parents=True)
    (build / "index.html").write_text("<html><body>home</body></html>")
    (build / "robots.txt").write_text("User-agent: *")
    (build / "js" / "app.js").write_text("console.log('app');")
    (build / "css" / "static-asset.css").write_text("body { color: red; }")
    (build / "docs").mkdir()
    (build / "docs" / "index.html").write_text("<html>docs</html>")
    return build


@pytest.fixture
def logs():
    return Logs()


@pytest.fixture
def log_capture(caplog):
    """caplog at INFO for the siteserver namespace."""
    caplog.set_level(logging.INFO, logger="siteserver")
    return caplog


# ---------------------------------------------------------------------------
# Stand-in API router
# ---------------------------------------------------------------------------

class ItemIn(BaseModel):
    name: str
    quantity: int


def build_test_router() -> APIRouter:
    """Router exercising every kind of downstream failure."""
    router = APIRouter()

    @router.get("/ping")
    async def ping():
        return {"pong": True}

    @router.get("/teapot")
    async def teapot():
        raise HttpError("I'm a teapot", 418)

    @router.get("/no-code")
    async def no_code():
        raise HttpError("Something broke")

    @router.get("/no-message")
    async def no_message():
        raise HttpError("", 503)

    @router.get("/forbidden")
    async def forbidden():
        raise HTTPException(status_code=403, detail="Forbidden thing")

    @router.get("/crash")
    async def crash():
        raise RuntimeError("database password is hunter2")

    @router.post("/items")
    async def create_item(item: ItemIn):
        return {"name": item.name, "quantity": item.quantity}

    @router.get("/stream-fails")
    async def stream_fails():
        async def chunks():
            yield b"first chunk"
            await asyncio.sleep(0)
            raise RuntimeError("broke mid-stream")

        return StreamingResponse(chunks(), media_type="text/plain")

    return router


@pytest.fixture
def test_app(settings, logs, static_root):
    from siteserver.app import create_app
    return create_app(settings=settings, logs=logs, api_router=build_test_router())


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def app_client(test_app):
    """httpx client talking to the app in-process."""
    from httpx import ASGITransport, AsyncClient

    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
