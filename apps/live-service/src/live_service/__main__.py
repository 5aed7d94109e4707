"""Entrypoint for running the live service.

Usage:
    python -m live_service
    python -m live_service --port 8080
    python -m live_service --host 0.0.0.0 --port 8080
"""

import argparse
import logging
import os
import sys

from live_service.logging_config import configure_focused_logging


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Live Service - MediaMTX hooks to supervised HLS transcoding"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("LIVE_HOST", "0.0.0.0"),
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("LIVE_PORT", "8080")),
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args()


def main() -> None:
    """Main entrypoint for the live service."""
    args = parse_args()
    configure_focused_logging(args.log_level)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting Live Service on {args.host}:{args.port}")

    try:
        import uvicorn

        from live_service.main import create_app

        uvicorn.run(
            create_app(),
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
