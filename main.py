#!/usr/bin/env python3
"""Main entry point for the combat tournament engine."""

import logging
import os
import sys

from config.settings import get_default_config


def setup_logging(level: str = "INFO"):
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def print_usage():
    """Print usage information for local development."""
    print("Combat Tournament Engine")
    print("=" * 40)
    print("   python main.py --web     start the API server")
    print("   python main.py --help    show this message")
    print()
    print("Configuration is read from tournament_config.json")
    print("(override the path with TOURNAMENT_CONFIG).")


def start_web_server():
    """Start the FastAPI web server."""
    config = get_default_config()
    setup_logging(config.system.log_level)

    import uvicorn

    from web.api import app

    port = int(os.environ.get("PORT", config.system.port))

    logging.getLogger(__name__).info(
        f"Starting tournament API on {config.system.host}:{port} "
        f"(database: {config.storage.db_path})"
    )
    uvicorn.run(app, host=config.system.host, port=port, log_level="info")


def main():
    """Main entry point."""
    if "--help" in sys.argv or "-h" in sys.argv:
        print_usage()
    elif "--web" in sys.argv or "PORT" in os.environ:
        start_web_server()
    else:
        print_usage()


if __name__ == "__main__":
    main()
