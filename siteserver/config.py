#  Site Server - Configuration
#
#  Loads config.json (optional) and layers environment overrides on top.
#  Dot-notation path lookup: cfg("server.port")
#  Settings is the explicit snapshot handed to every component.
#
#  Depends on: config.json (optional)
#  Used by:    container.py, app.py, lifecycle.py, run.py

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_PATH = PROJECT_ROOT / "config.json"

# ---------------------------------------------------------------------------
# Load config
# ---------------------------------------------------------------------------

_config: dict = {}


def _load_config(path: Path | None = None):
    """Load configuration from JSON file (internal, called once at import time).

    A missing file is fine: every setting has a default and most can be
    overridden from the environment.
    """
    global _config
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        _config = {}
        return
    with open(config_path) as f:
        _config = json.load(f)


_load_config()


def cfg(path: str, default=None):
    """Get a config value by dot-notation path.

    Example: cfg("logging.backup_count") -> 14
    """
    keys = path.split(".")
    val = _config
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val


def _env_int(name: str, default):
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{value}'") from None


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_PORT = 5000
DEFAULT_API_PREFIX = "/api"
DEFAULT_STATIC_DIRS = ("build", "build/js", "build/css")
DEFAULT_BODY_LIMIT_BYTES = 100 * 1024
DEFAULT_SHUTDOWN_GRACE_SECONDS = 2.0

CORS_ALLOW_HEADERS = ("Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization")
CORS_ALLOW_METHODS = ("GET", "POST", "PATCH", "DELETE")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    base_dir: Path = PROJECT_ROOT
    static_dirs: tuple[str, ...] = DEFAULT_STATIC_DIRS
    api_prefix: str = DEFAULT_API_PREFIX
    run_tests: bool = False
    body_limit_bytes: int = DEFAULT_BODY_LIMIT_BYTES
    shutdown_grace_seconds: float = DEFAULT_SHUTDOWN_GRACE_SECONDS
    log_level: str = "INFO"
    log_format: str = "json"
    log_dir: Path = PROJECT_ROOT / "logs"
    log_rotation_when: str = "midnight"
    log_backup_count: int = 14
    cors_allow_headers: tuple[str, ...] = CORS_ALLOW_HEADERS
    cors_allow_methods: tuple[str, ...] = CORS_ALLOW_METHODS

    @property
    def static_paths(self) -> list[Path]:
        """Static directories in lookup order, resolved against base_dir."""
        return [self.base_dir / d for d in self.static_dirs]

    @classmethod
    def from_config(cls) -> "Settings":
        """Snapshot config.json values with environment overrides applied."""
        base_dir = Path(os.environ.get("BASE_DIR") or cfg("server.base_dir", str(PROJECT_ROOT)))
        log_dir = Path(os.environ.get("LOG_DIR") or cfg("logging.dir", str(base_dir / "logs")))
        return cls(
            host=os.environ.get("HOST") or cfg("server.host", "0.0.0.0"),
            port=_env_int("PORT", cfg("server.port", DEFAULT_PORT)),
            base_dir=base_dir,
            static_dirs=tuple(cfg("server.static_dirs", DEFAULT_STATIC_DIRS)),
            api_prefix=cfg("server.api_prefix", DEFAULT_API_PREFIX),
            # Presence alone enables test mode, whatever the value
            run_tests=os.environ.get("RUN_TESTS") is not None,
            body_limit_bytes=cfg("server.body_limit_bytes", DEFAULT_BODY_LIMIT_BYTES),
            shutdown_grace_seconds=cfg("server.shutdown_grace_seconds", DEFAULT_SHUTDOWN_GRACE_SECONDS),
            log_level=os.environ.get("LOG_LEVEL") or cfg("logging.level", "INFO"),
            log_format=os.environ.get("LOG_FORMAT") or cfg("logging.format", "json"),
            log_dir=log_dir,
            log_rotation_when=cfg("logging.rotation_when", "midnight"),
            log_backup_count=cfg("logging.backup_count", 14),
        )


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------

def validate_config(settings: Settings):
    """Validate critical config values. Call during startup (not at import time).

    Raises ConfigError for fatal issues, logs warnings for non-fatal ones.
    """
    _logger = logging.getLogger("siteserver.config")

    # Fatal: port must be valid
    if not isinstance(settings.port, int) or not (1 <= settings.port <= 65535):
        raise ConfigError(f"server.port must be 1-65535, got {settings.port}")

    if not isinstance(settings.shutdown_grace_seconds, (int, float)) or settings.shutdown_grace_seconds <= 0:
        raise ConfigError(
            f"server.shutdown_grace_seconds must be > 0, got {settings.shutdown_grace_seconds}"
        )

    if not isinstance(settings.body_limit_bytes, int) or settings.body_limit_bytes <= 0:
        raise ConfigError(f"server.body_limit_bytes must be > 0, got {settings.body_limit_bytes}")

    if not settings.api_prefix.startswith("/") or settings.api_prefix == "/":
        raise ConfigError(f"server.api_prefix must start with '/' and not be the root, got '{settings.api_prefix}'")

    # Warning: nothing to serve yet (API-only is still valid)
    missing = [str(p) for p in settings.static_paths if not p.is_dir()]
    if missing:
        _logger.warning("Static directories not found, they will be skipped: %s", ", ".join(missing))


class ConfigError(Exception):
    """Raised when critical configuration is invalid."""
