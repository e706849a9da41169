"""
Todo Lists server runner.

Usage:
    python -m src.lists_api.run_server                  # Host/port from HOST and PORT
    python -m src.lists_api.run_server --port 8080      # Custom port
    python -m src.lists_api.run_server --host 0.0.0.0   # Bind to all interfaces
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from .logging_setup import setup_logging
from .settings import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Start the Todo Lists FastAPI server")
    parser.add_argument("--host", default=settings.host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    parser.add_argument(
        "--log-level",
        default=settings.log_level.lower(),
        choices=["critical", "error", "warning", "info", "debug"],
        help="Logging level",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Configure logging and serve the application until interrupted."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    logger.info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(
        "src.lists_api.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
