#  Site Server - uvicorn Server Tests
#
#  SiteServer hooks: bound socket reporting and signal routing.
#
#  Depends on: siteserver/server.py
#  Used by:    pytest

import signal
from unittest.mock import AsyncMock, MagicMock, patch

import uvicorn

from siteserver.models.enums import LifecyclePhase
from siteserver.server import SiteServer, build_server


def make_lifecycle():
    lifecycle = MagicMock()
    lifecycle.logs = MagicMock()
    return lifecycle


class TestBuildServer:
    def test_uses_settings(self, settings):
        server = build_server(MagicMock(), settings, make_lifecycle())
        assert isinstance(server, SiteServer)
        assert server.config.port == settings.port
        assert server.config.host == settings.host
        assert server.config.timeout_graceful_shutdown == settings.shutdown_grace_seconds


class TestSiteServer:
    def test_signal_triggers_shutdown(self, settings):
        lifecycle = make_lifecycle()
        server = build_server(MagicMock(), settings, lifecycle)
        server.handle_exit(signal.SIGINT, None)
        lifecycle.shutdown.assert_called_once_with()
        lifecycle.logs.info.assert_called_once_with("%s triggered", "SIGINT")
        assert server.should_exit is True

    async def test_startup_marks_serving(self, settings):
        lifecycle = make_lifecycle()
        server = build_server(MagicMock(), settings, lifecycle)

        async def fake_startup(self, sockets=None):
            self.started = True

        with patch.object(uvicorn.Server, "startup", new=fake_startup):
            await server.startup()
        lifecycle.mark_serving.assert_called_once_with(settings.port)

    async def test_failed_startup_not_marked(self, settings):
        lifecycle = make_lifecycle()
        server = build_server(MagicMock(), settings, lifecycle)

        with patch.object(uvicorn.Server, "startup", new=AsyncMock()):
            await server.startup()
        lifecycle.mark_serving.assert_not_called()

    def test_with_real_lifecycle(self, settings, logs):
        from siteserver.lifecycle import LifecycleManager

        exit_func = MagicMock()
        lifecycle = LifecycleManager(settings=settings, logs=logs, exit_func=exit_func)
        server = build_server(MagicMock(), settings, lifecycle)
        server.handle_exit(signal.SIGTERM, None)
        assert lifecycle.continue_startup is False
        # No running loop: termination is immediate
        assert lifecycle.phase == LifecyclePhase.TERMINATED
        exit_func.assert_called_once_with(0)
