#  Site Server - Dependency Injection Container
#
#  DeclarativeContainer wiring settings, logging and the lifecycle.
#  Replaces module-level singletons with injectable providers.
#
#  Depends on: config.py, logging_config.py, static.py, lifecycle.py
#  Used by:    app.py, run.py, routes/api.py

from dependency_injector import containers, providers

from siteserver.config import Settings
from siteserver.lifecycle import LifecycleManager
from siteserver.logging_config import LogRotation, Logs
from siteserver.static import StaticResolver


class Container(containers.DeclarativeContainer):
    """DI container for the Site Server.

    All providers are Singletons, one instance per process.
    Routes access them via @inject + Depends(Provide[Container.xxx]).
    Tests override them via container.xxx.override(providers.Object(mock)).
    """

    wiring_config = containers.WiringConfiguration(
        modules=[
            "siteserver.routes.api",
        ]
    )

    settings = providers.Singleton(Settings.from_config)
    logs = providers.Singleton(Logs)

    # --- Startup tasks ---
    log_rotation = providers.Singleton(LogRotation, settings=settings)

    static_resolver = providers.Singleton(StaticResolver.from_settings, settings=settings)

    lifecycle = providers.Singleton(
        LifecycleManager,
        settings=settings,
        logs=logs,
        startup_tasks=providers.List(log_rotation),
    )
