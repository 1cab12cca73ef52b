"""
JSONVault engine - main entry point.

This module runs the backup engine as a long-lived process:
- Ensures every registered collection exists (restoring from snapshots)
- Starts the hourly/daily/weekly snapshot schedule
- Runs the startup integrity audit and baseline snapshot

Usage:
    python -m vault.jsonvault.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - Collections are ensured before the schedule starts
    - Graceful shutdown cancels every schedule timer

How to change safely:
    - Add new components with enable/disable flags
    - Test shutdown sequence thoroughly
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import json_log_formatter

from .config import EngineConfig
from .schedule import AsyncioTimerService
from .service import BackupService

logger = logging.getLogger(__name__)


def setup_logging(config: EngineConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Engine configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("asyncio").setLevel(logging.WARNING)


class Engine:
    """JSONVault engine orchestrator.

    Attributes:
        config: Engine configuration
        service: Backup service (created in start())

    Example:
        >>> engine = Engine()
        >>> await engine.start()
        >>> # Engine is running until request_shutdown()
        >>> await engine.stop()
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        service: BackupService | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Optional engine configuration (loaded from env if not provided)
            service: Optional pre-built service (built from config if not provided)
        """
        self.config = config or EngineConfig.from_env()
        self.service = service
        self._running = False
        self._shutdown_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the engine and wait for shutdown."""
        if self._running:
            logger.warning("Engine already running")
            return

        logger.info("Starting JSONVault engine")
        self.config.log_config()

        try:
            if self.service is None:
                self.service = BackupService.from_config(self.config)

            self.service.storage.make_dirs(self.config.storage.data_path)
            self.service.prepare()

            for collection in self.service.registry:
                if self.service.ensure_collection(collection):
                    logger.info(f"Recovered missing {collection} from snapshot")

            if self.config.schedule.enabled:
                self.service.start_schedule(AsyncioTimerService(asyncio.get_running_loop()))
            else:
                logger.info("Backup schedule disabled")

            self._running = True
            logger.info("JSONVault engine started successfully")

            await self._shutdown_event.wait()

        except Exception as e:
            logger.error(f"Engine startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the engine gracefully."""
        if self.service is not None:
            self.service.stop_schedule()

        if self._running:
            self._running = False
            logger.info("JSONVault engine stopped")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def main() -> None:
    """Main entry point."""
    try:
        config = EngineConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    engine = Engine(config)

    def handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown")
        engine.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        loop.run_until_complete(engine.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(engine.stop())
        loop.close()


if __name__ == "__main__":
    main()
