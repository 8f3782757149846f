#  Site Server - Entry Point
#
#  Runs the startup tasks, then serves the FastAPI app via uvicorn unless
#  RUN_TESTS is set or startup failed.
#
#  Depends on: siteserver/app.py, siteserver/server.py, siteserver/logging_config.py
#  Used by:    (run directly)

import asyncio
import json
import sys


def main():
    try:
        from siteserver.config import ConfigError
    except json.JSONDecodeError as e:
        print(f"Error: config.json is not valid JSON: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        from siteserver.app import app, container
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    from siteserver.logging_config import setup_logging
    from siteserver.server import build_server

    settings = container.settings()
    setup_logging(level=settings.log_level, fmt=settings.log_format)

    lifecycle = container.lifecycle()
    server = build_server(app, settings, lifecycle)

    try:
        asyncio.run(lifecycle.run(server))
    except KeyboardInterrupt:
        # uvicorn re-raises SIGINT once it has stopped serving
        pass


if __name__ == "__main__":
    main()
