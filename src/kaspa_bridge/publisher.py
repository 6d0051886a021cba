#!/usr/bin/env python3
"""Pub/sub publishing of encoded block templates.

This module handles the connection to the Redis sink and the publication
of serialized templates to the configured channel.
"""

import logging
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from .config import parse_redis_address
from .exceptions import BridgeConnectionError, PublishError

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Anything that can deliver a payload to a named channel."""

    async def publish(self, channel: str, payload: bytes) -> int:
        """Publish a payload and return the number of receivers."""
        ...


class RedisPublisher:
    """Publishes payloads to a Redis pub/sub channel."""

    def __init__(self, address: str, client: redis.Redis | None = None) -> None:
        """
        Initialize the publisher.

        Args:
            address: ``host:port`` or a redis:// URL
            client: Pre-built client (used by tests)
        """
        self.address: str = address
        self._client: redis.Redis | None = client

    def _build_client(self) -> redis.Redis:
        if self.address.startswith(("redis://", "rediss://")):
            return redis.Redis.from_url(self.address)
        host, port = parse_redis_address(self.address)
        return redis.Redis(host=host, port=port)

    async def connect(self) -> None:
        """Create the client and check the server answers ``PING``.

        Raises:
            BridgeConnectionError: If the liveness check fails
            ConfigError: If the address is malformed
        """
        if self._client is None:
            self._client = self._build_client()

        logger.info(f"Connecting to Redis at {self.address}")
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            raise BridgeConnectionError(
                f"could not connect to Redis: {e}",
                address=self.address
            ) from e
        logger.info("Redis connection OK")

    async def publish(self, channel: str, payload: bytes) -> int:
        """
        Publish a payload to a channel.

        Args:
            channel: Channel name
            payload: Encoded template

        Returns:
            Number of subscribers that received the message

        Raises:
            PublishError: If the sink could not deliver the payload
        """
        if self._client is None:
            raise PublishError("publisher is not connected", channel=channel)

        try:
            receivers = await self._client.publish(channel, payload)
        except (RedisError, OSError) as e:
            raise PublishError(f"error publishing to Redis: {e}", channel=channel) from e
        return int(receivers)

    async def close(self) -> None:
        """Close the Redis client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
