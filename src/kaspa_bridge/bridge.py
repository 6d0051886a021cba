"""
Kaspa template bridge service.

This module wires the template source, the shared store, the publisher and
the two long-running tasks together, and owns their lifecycle.
"""

import asyncio
import contextlib
import logging
import signal
from typing import TextIO

from .config import BridgeConfig
from .publisher import RedisPublisher
from .refresh_loop import RefreshLoop
from .reporter import Reporter
from .template_source import KaspadTemplateSource
from .template_store import TemplateStore

logger = logging.getLogger(__name__)


class TemplateBridge:
    """
    Main bridge service that relays block templates from kaspad to Redis.

    Startup connects to both ends and fails fast. After that the refresh
    loop and the reporter run until ``stop()`` is called or a signal
    arrives; they share nothing but the template store.
    """

    def __init__(
        self,
        config: BridgeConfig,
        source: KaspadTemplateSource | None = None,
        publisher: RedisPublisher | None = None,
        store: TemplateStore | None = None,
        stream: TextIO | None = None
    ):
        """
        Initialize the bridge.

        Args:
            config: Bridge configuration
            source: Template source (built from config if omitted)
            publisher: Publisher (built from config if omitted)
            store: Template store (a fresh empty one if omitted)
            stream: Reporter output stream (stdout if omitted)
        """
        self.config = config
        self.store = store if store is not None else TemplateStore()
        self.source = source if source is not None else KaspadTemplateSource(
            address=config.kaspad_address,
            pay_address=config.pay_address,
            extra_data=config.extra_data,
            request_timeout=config.request_timeout
        )
        self.publisher = publisher if publisher is not None else RedisPublisher(config.redis_address)

        self.refresh_loop = RefreshLoop(
            source=self.source,
            store=self.store,
            publisher=self.publisher,
            channel=config.redis_channel,
            poll_interval=config.block_wait_time
        )
        self.reporter = Reporter(self.store, interval=config.report_interval, stream=stream)

        self.running = False
        self.shutdown_event = asyncio.Event()

    @classmethod
    def from_file(cls, path: str) -> "TemplateBridge":
        """
        Create a bridge from a YAML config file.

        Raises:
            ConfigError: If the file is missing or invalid
        """
        config = BridgeConfig.from_file(path)
        config.log_config()
        return cls(config)

    async def connect(self) -> None:
        """
        Connect to the node and the publish sink.

        Raises:
            BridgeConnectionError: If either end is unreachable
        """
        await self.source.connect()
        try:
            await self.publisher.connect()
        except BaseException:
            await self.source.close()
            raise

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # Not available on Windows event loops
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, self.stop)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)

    async def _check_task_health(self, tasks: dict[str, asyncio.Task]) -> bool:
        """Check if any task has ended before shutdown was requested."""
        for name, task in tasks.items():
            if task.done():
                if self.shutdown_event.is_set():
                    continue
                try:
                    await task
                    logger.error(f"{name} task exited unexpectedly")
                except Exception as e:
                    logger.error(f"{name} task failed: {e}", exc_info=True)
                return False
        return True

    async def _cleanup_tasks(self, tasks: dict[str, asyncio.Task]) -> None:
        """Cancel tasks and close connections."""
        self.shutdown_event.set()
        for task in tasks.values():
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks.values(), return_exceptions=True)

        await self.source.close()
        await self.publisher.close()

    async def run(self) -> None:
        """
        Connect, then run the refresh loop and the reporter.

        Raises:
            BridgeConnectionError: If startup connections fail
        """
        logger.info("Kaspa template bridge starting...")
        self.running = True
        self._install_signal_handlers()
        try:
            await self.connect()
        except BaseException:
            self._remove_signal_handlers()
            self.running = False
            raise

        tasks: dict[str, asyncio.Task] = {}
        try:
            if self.shutdown_event.is_set():
                logger.info("Shutdown requested during startup")
                return

            tasks = {
                "refresh": asyncio.create_task(self.refresh_loop.run(self.shutdown_event)),
                "report": asyncio.create_task(self.reporter.run(self.shutdown_event)),
            }
            logger.info("Template refresh and reporting started")

            while self.running:
                try:
                    await asyncio.wait_for(self.shutdown_event.wait(), timeout=1.0)
                    break
                except asyncio.TimeoutError:
                    pass

                if not await self._check_task_health(tasks):
                    logger.error("Critical task failure, shutting down")
                    break

        finally:
            self._remove_signal_handlers()
            await self._cleanup_tasks(tasks)
            self.refresh_loop.log_metrics()
            self.running = False
            logger.info("Kaspa template bridge stopped")

    def stop(self) -> None:
        """Request an orderly shutdown."""
        logger.info("Shutdown requested")
        self.running = False
        self.shutdown_event.set()
