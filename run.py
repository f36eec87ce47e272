"""
Run script for starting the Realtime Call Bridge server with low-latency settings.

This script configures and starts the FastAPI server with WebSocket settings suited
to streaming telephony audio between the media gateway and OpenAI.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys

import uvicorn

from callbridge.config.logging_config import configure_logging

# Configure logging
logger = configure_logging()


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Start the Realtime Call Bridge server")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8000")),
        help="Port to run the server on (default: 8000 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for starting the server."""
    args = parse_args(argv)

    # The app module configures logging again on import, from LOG_LEVEL
    os.environ["LOG_LEVEL"] = args.log_level
    configure_logging(args.log_level)

    if not os.getenv("OPENAI_API_KEY"):
        logger.error("OPENAI_API_KEY environment variable not set")
        sys.exit(1)

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"Log level: {args.log_level}")

    uvicorn.run(
        "callbridge.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        # Use HTTP/1.1 for lower overhead than HTTP/2
        http="h11",
        # Disable access logs, we have our own logging
        access_log=False,
        websocket_ping_interval=5,
        websocket_ping_timeout=20,
        reload=os.getenv("ENV", "production").lower() == "development",
    )


if __name__ == "__main__":
    main()
