#  Site Server - Lifecycle Manager
#
#  Owns the startup/shutdown state: runs the startup tasks, decides
#  whether to bind the listening socket, and drives graceful exit.
#
#    starting ──tasks ok──> serving ──signal──> shutting_down ──grace──> terminated
#        └────any failure──────────────────────────┘
#
#  Depends on: config.py, logging_config.py, models/enums.py
#  Used by:    container.py, server.py, run.py, routes/api.py

import asyncio
import sys
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Protocol

from siteserver.config import Settings, validate_config
from siteserver.logging_config import Logs
from siteserver.models.enums import LifecyclePhase

StartupTask = Callable[[], Awaitable[object]]


class Servable(Protocol):
    should_exit: bool

    async def serve(self) -> None: ...


@dataclass
class AppState:
    continue_startup: bool = True
    phase: LifecyclePhase = LifecyclePhase.STARTING
    started_at: float = field(default_factory=time.perf_counter)
    failures: list[BaseException] = field(default_factory=list)


def _task_name(task: StartupTask) -> str:
    return getattr(task, "name", None) or getattr(task, "__name__", None) or type(task).__name__


class LifecycleManager:
    """Sequence startup tasks, serving and graceful shutdown.

    All state lives in AppState and is only touched from the event loop
    thread, so no locking is needed.
    """

    def __init__(
        self,
        settings: Settings,
        logs: Logs,
        startup_tasks: Iterable[StartupTask] = (),
        exit_func: Callable[[int], object] = sys.exit,
    ):
        self.settings = settings
        self.logs = logs
        self.state = AppState()
        self._tasks = list(startup_tasks)
        self._exit = exit_func
        self._loop: asyncio.AbstractEventLoop | None = None
        self._server: Servable | None = None
        self._exit_handle: asyncio.TimerHandle | None = None
        self._terminated = asyncio.Event()

    @property
    def continue_startup(self) -> bool:
        return self.state.continue_startup

    @property
    def phase(self) -> LifecyclePhase:
        return self.state.phase

    # -----------------------------------------------------------------------
    # Startup
    # -----------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Run every startup task concurrently and wait for all of them.

        Returns True only if all tasks succeeded. Every failure is kept in
        state.failures, not just the first one.
        """
        if not self._tasks:
            return self.state.continue_startup

        results = await asyncio.gather(*(task() for task in self._tasks), return_exceptions=True)
        for task, result in zip(self._tasks, results):
            if isinstance(result, BaseException):
                self.state.failures.append(result)
                self.logs.error("Startup task '%s' failed: %s", _task_name(task), result)

        if self.state.failures:
            self.state.continue_startup = False
            self.logs.error("Aborting... %s", "; ".join(str(f) or repr(f) for f in self.state.failures))
        return self.state.continue_startup

    async def run(self, server: Servable | None = None) -> None:
        """Initialize, then serve unless in test mode or startup failed."""
        self._loop = asyncio.get_running_loop()
        self._server = server
        try:
            validate_config(self.settings)
            ready = await self.initialize()

            if self.settings.run_tests:
                self.logs.info("Test mode: not binding port %s", self.settings.port)
                return

            if not ready:
                self.shutdown(exit_code=1)
            elif server is None:
                self.logs.warning("No server to run; startup tasks finished")
                return
            else:
                await server.serve()
                if self.state.phase == LifecyclePhase.STARTING:
                    self.state.continue_startup = False
                    self.logs.error("aborting... server stopped before accepting connections")
                    self.shutdown(exit_code=1)
        except Exception as exc:
            self.state.continue_startup = False
            self.logs.error("aborting... %s", exc)
            self.shutdown(exit_code=1)

        if self.state.phase in (LifecyclePhase.SHUTTING_DOWN, LifecyclePhase.TERMINATED):
            await self._terminated.wait()

    def mark_serving(self, port: int):
        """Record that the listening socket is bound."""
        if self.state.phase != LifecyclePhase.STARTING:
            return
        self.state.phase = LifecyclePhase.SERVING
        elapsed_ms = (time.perf_counter() - self.state.started_at) * 1000
        self.logs.info("Server started on port %s.", port)
        self.logs.info("Server startup took %.4f milliseconds to perform.", elapsed_ms)
        self.logs.info("All startup processes are loaded and running.")

    # -----------------------------------------------------------------------
    # Shutdown
    # -----------------------------------------------------------------------

    def shutdown(self, exit_code: int = 0):
        """Stop accepting connections and exit after the grace period.

        Safe to call from a signal handler and more than once.
        """
        if self.state.phase in (LifecyclePhase.SHUTTING_DOWN, LifecyclePhase.TERMINATED):
            return
        self.state.continue_startup = False
        self.state.phase = LifecyclePhase.SHUTTING_DOWN
        self.logs.info("gracefully exiting")

        if self._server is not None:
            self._server.should_exit = True

        loop = self._loop
        if loop is None or loop.is_closed():
            self.terminate(exit_code)
            return
        loop.call_soon_threadsafe(self._schedule_exit, exit_code)

    def _schedule_exit(self, exit_code: int):
        self._exit_handle = self._loop.call_later(
            self.settings.shutdown_grace_seconds, self.terminate, exit_code
        )

    def terminate(self, exit_code: int = 0):
        if self.state.phase == LifecyclePhase.TERMINATED:
            return
        self.state.phase = LifecyclePhase.TERMINATED
        self._terminated.set()
        self.logs.info("Exiting with status %s", exit_code)
        self._exit(exit_code)
