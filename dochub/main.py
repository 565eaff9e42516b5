#!/usr/bin/env python3
"""
DocHub - Main Entry Point
=========================

Runs the DocHub API server.

Usage:
    python -m dochub.main
    python -m dochub.main --port 9000 --log-level DEBUG
"""

import argparse
import logging
import sys

import uvicorn

from dochub.api.config import get_settings


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="DocHub - Document Management API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help=f"Bind address (default: {settings.HOST})",
    )

    parser.add_argument(
        "-p", "--port",
        type=int,
        default=settings.PORT,
        help=f"Bind port (default: {settings.PORT})",
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help=f"Logging level (default: {settings.LOG_LEVEL})",
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger("DOCHUB_MAIN")

    logger.info("=" * 60)
    logger.info("DocHub API starting on %s:%d", args.host, args.port)
    logger.info("=" * 60)

    uvicorn.run(
        "dochub.api.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )

    logger.info("DocHub API shutdown complete")
    return 0


def run() -> None:
    """Synchronous entry point."""
    try:
        sys.exit(main())
    except Exception:
        logging.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    run()
