"""CLI entry point for the ESS server."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def main() -> None:
    """Main CLI entry point for the ESS server."""
    parser = argparse.ArgumentParser(
        prog="ess-gateway",
        description="ESS: External Search Service gateway",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Server bind address (overrides config)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Server port (overrides config)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Number of worker processes",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ESS {_get_version()}",
    )

    args = parser.parse_args()

    from ess.config.settings import Settings
    from ess.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    # Apply CLI overrides
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers
    if args.log_level:
        settings.observability.log_level = args.log_level

    setup_logging(settings.observability)
    log_level = settings.observability.log_level.lower()

    import uvicorn

    from ess.api.app import create_app

    if args.reload or settings.server.workers > 1:
        # Worker processes and the reloader rebuild the app from the environment.
        uvicorn.run(
            "ess.api.app:create_app",
            factory=True,
            host=settings.server.host,
            port=settings.server.port,
            workers=settings.server.workers if not args.reload else 1,
            reload=args.reload,
            log_level=log_level,
        )
        return

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=log_level,
    )


def _get_version() -> str:
    """Get the package version."""
    try:
        from ess import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
