#  Site Server - uvicorn Server
#
#  uvicorn.Server hooked into the lifecycle: reports when the socket is
#  bound and routes SIGINT/SIGTERM through LifecycleManager.shutdown().
#
#  Depends on: lifecycle.py, config.py
#  Used by:    run.py

import signal

import uvicorn

from siteserver.config import Settings
from siteserver.lifecycle import LifecycleManager


class SiteServer(uvicorn.Server):
    def __init__(self, config: uvicorn.Config, lifecycle: LifecycleManager):
        super().__init__(config)
        self.lifecycle = lifecycle

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            self.lifecycle.mark_serving(self.config.port)

    def handle_exit(self, sig: int, frame) -> None:
        try:
            name = signal.Signals(sig).name
        except ValueError:
            name = str(sig)
        self.lifecycle.logs.info("%s triggered", name)
        # uvicorn first: a second SIGINT must still be able to force exit
        super().handle_exit(sig, frame)
        self.lifecycle.shutdown()


def build_server(app, settings: Settings, lifecycle: LifecycleManager) -> SiteServer:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        # Logging is ours; see logging_config.setup_logging
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )
    return SiteServer(config, lifecycle)
