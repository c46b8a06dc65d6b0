"""
Event Dead Letters Service Entrypoint
Opens the configured store and serves its health and metrics until stopped
"""

import asyncio
import signal
import sys
from typing import Optional

import structlog

from event_dead_letters.config.loader import load_config
from event_dead_letters.config.settings import DeadLettersSettings
from event_dead_letters.dlq.factory import open_event_dead_letters
from event_dead_letters.observability.health import (
    EventDeadLettersHealthCheck,
    run_periodic_health_checks,
    start_health_server,
)
from event_dead_letters.observability.logging import configure_logging
from event_dead_letters.observability.metrics import start_metrics_server
from event_dead_letters.observability.tracing import init_tracing

logger = structlog.get_logger(__name__)


class DeadLettersService:
    """
    Long-running host of the dead letter store

    The backend handle is acquired once in run() and released when run()
    returns, whether it stops on shutdown() or on an error.
    """

    def __init__(self, config: Optional[DeadLettersSettings] = None):
        """
        Initialize service

        Args:
            config: Configuration (loaded from environment if None)
        """
        self.config = config or DeadLettersSettings()
        self._shutdown_event = asyncio.Event()

        logger.info("DeadLettersService initialized", backend=self.config.backend)

    async def run(self) -> None:
        observability = self.config.observability

        if observability.metrics_enabled:
            start_metrics_server(port=observability.metrics_port)

        if observability.enable_tracing:
            init_tracing()

        health_server = start_health_server(port=observability.health_check_port)

        try:
            async with open_event_dead_letters(self.config) as dead_letters:
                health_task = asyncio.create_task(
                    run_periodic_health_checks(
                        EventDeadLettersHealthCheck(dead_letters),
                        interval_seconds=observability.health_check_interval_seconds,
                    )
                )

                await self._shutdown_event.wait()

                health_task.cancel()
                try:
                    await health_task
                except asyncio.CancelledError:
                    pass
        finally:
            health_server.shutdown()
            logger.info("DeadLettersService stopped")

    def shutdown(self) -> None:
        """
        Request graceful shutdown
        """
        logger.info("Shutdown signal received")
        self._shutdown_event.set()


async def main(config_path: Optional[str] = None) -> None:
    """
    Main entrypoint
    """
    config = load_config(config_path)
    configure_logging(
        log_level=config.observability.log_level,
        log_format=config.observability.log_format,
    )

    logger.info("Starting Event Dead Letters service")

    service = DeadLettersService(config)

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, service.shutdown)

    try:
        await service.run()
    except Exception as e:
        logger.error("Service failed", error=str(e))
        sys.exit(1)


def cli() -> None:
    """Console script entrypoint: optional YAML config path as first argument"""
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))


if __name__ == "__main__":
    cli()
