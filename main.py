"""
Main entry point for the Tweet Sniper webhook service.
"""

import asyncio
import signal
import sys
from typing import Optional

import uvicorn

from config import settings
from utils.logger import setup_logger, get_logger
from api.app import create_app

# Setup logging
setup_logger(settings.log_level)
logger = get_logger(__name__)


class Application:
    """
    Main application class.
    Runs the webhook API server until a shutdown signal arrives.
    """

    def __init__(self):
        self._api_server: Optional[uvicorn.Server] = None

    async def run(self) -> None:
        """Run the FastAPI server."""
        logger.info("=" * 50)
        logger.info("Tweet Sniper - Starting up")
        logger.info("=" * 50)

        app = create_app(settings)

        config = uvicorn.Config(
            app=app,
            host=settings.api_host,
            port=settings.api_port,
            log_level="warning",  # Reduce uvicorn logging noise
        )

        self._api_server = uvicorn.Server(config)

        logger.info(f"API server starting on http://{settings.api_host}:{settings.api_port}")

        try:
            await self._api_server.serve()
        except asyncio.CancelledError:
            logger.info("Application cancelled")
        finally:
            logger.info("Shutdown complete")

    def request_shutdown(self) -> None:
        """Ask uvicorn to finish in-flight requests and exit."""
        logger.info("Received shutdown signal")
        if self._api_server:
            self._api_server.should_exit = True


def handle_signals(app: Application, loop: asyncio.AbstractEventLoop):
    """Setup signal handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, app.request_shutdown)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


def main():
    """Main entry point."""
    logger.info("Starting Tweet Sniper service...")

    app = Application()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    handle_signals(app, loop)

    try:
        loop.run_until_complete(app.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        loop.close()
        logger.info("Application terminated")


if __name__ == "__main__":
    main()
