"""SmartBasket server runner.

Starts the background expiry sweeper and serves the HTTP API with uvicorn.
The sweeper shares the API's lifecycle manager, so sweeps and requests for
the same basket never interleave.

Usage:
    python src/server.py                        # API + sweeper on :8000
    python src/server.py --port 9000
    python src/server.py --no-sweeper           # API only
"""

import argparse

import structlog
import uvicorn

logger = structlog.get_logger(__name__)


def run(host, port, sweeper_enabled=True):
    from app import app
    from tracking.basket.service import get_sweeper, reset_lifecycle

    sweeper = get_sweeper()
    if sweeper_enabled:
        sweeper.start()
    else:
        logger.info("Expiry sweeper disabled")

    try:
        uvicorn.run(app, host=host, port=port, log_config=None)
    finally:
        reset_lifecycle()


def main():
    parser = argparse.ArgumentParser(description="SmartBasket API server")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--no-sweeper",
        action="store_true",
        help="Do not run the idle basket sweeper in the background",
    )
    args = parser.parse_args()

    run(args.host, args.port, sweeper_enabled=not args.no_sweeper)


if __name__ == "__main__":
    main()
