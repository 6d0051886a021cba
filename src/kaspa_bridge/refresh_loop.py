"""
Template refresh loop.

Each cycle fetches a template, stores it, encodes it and publishes it, then
sleeps for the poll interval. The store is always updated before the publish
attempt, so readers see the newest template even while publishing fails.
"""

import asyncio
import logging
from enum import Enum

from .encoding import encode_template
from .exceptions import EncodingError, PublishError, UpstreamUnavailable
from .publisher import Publisher
from .template_source import TemplateSource
from .template_store import TemplateStore

logger = logging.getLogger(__name__)


class CycleOutcome(Enum):
    """How a single refresh cycle ended."""

    PUBLISHED = "published"
    FETCH_FAILED = "fetch_failed"
    ENCODE_FAILED = "encode_failed"
    PUBLISH_FAILED = "publish_failed"


class RefreshLoop:
    """
    Background producer of block templates.

    Retries are unbounded at a fixed interval; there is no backoff.
    """

    METRICS_LOG_EVERY = 60  # cycles

    def __init__(
        self,
        source: TemplateSource,
        store: TemplateStore,
        publisher: Publisher,
        channel: str,
        poll_interval: float
    ):
        """
        Initialize the refresh loop.

        Args:
            source: Where templates come from
            store: Shared slot the latest template is written to
            publisher: Sink for encoded templates
            channel: Channel name templates are published on
            poll_interval: Seconds to sleep between cycles
        """
        self.source = source
        self.store = store
        self.publisher = publisher
        self.channel = channel
        self.poll_interval = poll_interval

        # Metrics tracking
        self.cycles = 0
        self.fetch_failures = 0
        self.templates_stored = 0
        self.encode_failures = 0
        self.publish_failures = 0
        self.templates_published = 0
        self.unexpected_errors = 0

    async def run_once(self) -> CycleOutcome:
        """
        Run one fetch/store/encode/publish cycle without sleeping.

        Returns:
            The outcome of the cycle
        """
        try:
            template = await self.source.fetch()
        except UpstreamUnavailable as e:
            self.fetch_failures += 1
            logger.error(f"error fetching block template: {e}")
            return CycleOutcome.FETCH_FAILED

        self.store.set(template)
        self.templates_stored += 1
        logger.debug(f"Stored {template}")

        try:
            payload = encode_template(template)
        except EncodingError as e:
            self.encode_failures += 1
            logger.error(str(e))
            return CycleOutcome.ENCODE_FAILED

        try:
            receivers = await self.publisher.publish(self.channel, payload)
        except PublishError as e:
            self.publish_failures += 1
            logger.error(str(e))
            return CycleOutcome.PUBLISH_FAILED

        self.templates_published += 1
        logger.info(f"template published to Redis channel {self.channel} ({receivers} receivers)")
        return CycleOutcome.PUBLISHED

    async def _sleep(self, shutdown_event: asyncio.Event) -> None:
        """Sleep for the poll interval, waking early on shutdown."""
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """
        Run cycles until the shutdown event is set.

        Args:
            shutdown_event: Checked before each fetch and each sleep
        """
        logger.info(
            f"Refresh loop started: publishing to '{self.channel}' "
            f"every {self.poll_interval} seconds"
        )

        while not shutdown_event.is_set():
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.unexpected_errors += 1
                logger.error(f"Unexpected error in refresh cycle: {e}", exc_info=True)

            self.cycles += 1
            if self.cycles % self.METRICS_LOG_EVERY == 0:
                self.log_metrics()

            if shutdown_event.is_set():
                break
            await self._sleep(shutdown_event)

        logger.info("Refresh loop stopped")

    def get_metrics(self) -> dict[str, int]:
        """
        Get current loop metrics.

        Returns:
            Dictionary of metric names to values
        """
        return {
            "cycles": self.cycles,
            "fetch_failures": self.fetch_failures,
            "templates_stored": self.templates_stored,
            "encode_failures": self.encode_failures,
            "publish_failures": self.publish_failures,
            "templates_published": self.templates_published,
            "unexpected_errors": self.unexpected_errors,
        }

    def log_metrics(self) -> None:
        """Log current loop metrics."""
        metrics = self.get_metrics()
        logger.info(
            f"RefreshLoop Metrics: "
            f"Cycles={metrics['cycles']}, "
            f"Stored={metrics['templates_stored']}, "
            f"Published={metrics['templates_published']}, "
            f"FetchFailures={metrics['fetch_failures']}, "
            f"EncodeFailures={metrics['encode_failures']}, "
            f"PublishFailures={metrics['publish_failures']}, "
            f"Errors={metrics['unexpected_errors']}"
        )
