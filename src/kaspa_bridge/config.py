#!/usr/bin/env python3
"""Configuration management for the Kaspa template bridge.

Configuration is read once at startup from a YAML file and validated into
an immutable dataclass. Any problem with the file is a ``ConfigError``.
"""

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

import yaml

from .exceptions import ConfigError

# Get logger for this module
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_REDIS_PORT = 6379
DEFAULT_PAY_ADDRESS = "kaspa:qyppkat8emnevrdtnu4hkkc6dmwj4xwmfh9ne3ncng49azgta7sg0ncrthn2erh"
DEFAULT_EXTRA_DATA = "'GodMiner/2.0.0' via onemorebsmith/kaspa-stratum-bridge_v1.2.1"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any, field_name: str = "duration") -> float:
    """Parse a duration into seconds.

    Accepts a plain number of seconds or a Go-style duration string such as
    ``"500ms"``, ``"1s"`` or ``"1m30s"``.

    Args:
        value: Raw value from the config file
        field_name: Key name used in error messages

    Returns:
        Duration in seconds (always positive)

    Raises:
        ConfigError: If the value is not a valid positive duration
    """
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a duration, got {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or "".join(n + u for n, u in parts) != text:
                raise ConfigError(
                    f"Invalid {field_name}: {value!r}. Expected e.g. '500ms', '1s' or '1m30s'"
                ) from None
            seconds = sum(float(n) * _DURATION_UNITS[u] for n, u in parts)
    else:
        raise ConfigError(f"{field_name} must be a duration, got {type(value).__name__}")

    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"{field_name} must be positive, got {value!r}")
    return seconds


def parse_redis_address(address: str) -> tuple[str, int]:
    """Split a ``host[:port]`` address.

    Args:
        address: Address without scheme

    Returns:
        Tuple of (host, port)

    Raises:
        ConfigError: If the port is not a valid TCP port
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        return address, DEFAULT_REDIS_PORT
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"Invalid redis port in address: {address}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"Invalid redis port in address: {address}")
    return host or "localhost", port


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Main configuration for the bridge.

    Attributes:
        kaspad_address: Upstream node RPC address (host:port or http(s) URL)
        redis_address: Publish sink address (host:port or redis:// URL)
        redis_channel: Pub/sub channel templates are published to
        block_wait_time: Poll interval in seconds
        pay_address: Payout address baked into every template request
        extra_data: Client identifier baked into every template request
        report_interval: Seconds between operator reports
        request_timeout: Upstream HTTP timeout in seconds
    """

    kaspad_address: str
    redis_address: str
    redis_channel: str
    block_wait_time: float = 1.0
    pay_address: str = DEFAULT_PAY_ADDRESS
    extra_data: str = DEFAULT_EXTRA_DATA
    report_interval: float = 5.0
    request_timeout: float = 10.0

    KNOWN_KEYS: ClassVar[frozenset[str]] = frozenset({
        "kaspad_address",
        "block_wait_time",
        "redis_address",
        "redis_channel",
        "pay_address",
        "extra_data",
        "report_interval",
        "request_timeout",
    })

    def __post_init__(self) -> None:
        """Validate bridge configuration."""
        for name in ("kaspad_address", "redis_address", "redis_channel"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{name} is required and must be a non-empty string")

        for name in ("pay_address", "extra_data"):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a string, got {getattr(self, name)!r}")

        if "://" in self.kaspad_address and not self.kaspad_address.startswith(("http://", "https://")):
            raise ConfigError(
                f"Invalid kaspad_address scheme: {self.kaspad_address}. Expected http or https"
            )

        if "://" in self.redis_address and not self.redis_address.startswith(("redis://", "rediss://")):
            raise ConfigError(
                f"Invalid redis_address scheme: {self.redis_address}. Expected redis or rediss"
            )
        if "://" not in self.redis_address:
            parse_redis_address(self.redis_address)

        prefix, sep, payload = self.pay_address.partition(":")
        if not sep or not prefix or not payload:
            raise ConfigError(f"Invalid pay_address: {self.pay_address!r}")

        for name in ("block_wait_time", "report_interval", "request_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")

    @classmethod
    def from_mapping(cls, raw: Any) -> "BridgeConfig":
        """Build a config from the parsed YAML document.

        Raises:
            ConfigError: If the document is not a mapping or a value is invalid
        """
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config must be a mapping of keys to values, got {type(raw).__name__}"
            )

        if unknown := sorted(str(key) for key in raw if key not in cls.KNOWN_KEYS):
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        values: dict[str, Any] = {
            name: raw[name]
            for name in ("kaspad_address", "redis_address", "redis_channel", "pay_address", "extra_data")
            if raw.get(name) is not None
        }
        for name in ("block_wait_time", "report_interval", "request_timeout"):
            if raw.get(name) is not None:
                values[name] = parse_duration(raw[name], name)

        for name in ("kaspad_address", "redis_address", "redis_channel"):
            if name not in values:
                raise ConfigError(f"Missing required config key: {name}")

        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigError(f"Invalid config: {e}") from e

    @classmethod
    def from_file(cls, path: str | Path) -> "BridgeConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the config file

        Returns:
            BridgeConfig instance with loaded values

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        config_path = Path(path)
        logger.info(f"Loading config @ `{config_path.resolve()}`")

        try:
            raw_text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Config file not found or unreadable: {e}") from e

        try:
            raw = yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed parsing config file: {e}") from e

        return cls.from_mapping(raw)

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Kaspa Template Bridge Configuration")
        logger.info("=" * 60)

        logger.info("Upstream Node:")
        logger.info(f"  Address: {self.kaspad_address}")
        logger.info(f"  Request Timeout: {self.request_timeout} seconds")
        logger.info(f"  Pay Address: {self.pay_address}")
        logger.info(f"  Extra Data: {self.extra_data}")

        logger.info("Publish Sink:")
        logger.info(f"  Redis Address: {self.redis_address}")
        logger.info(f"  Channel: {self.redis_channel}")

        logger.info("Schedule:")
        logger.info(f"  Block Wait Time: {self.block_wait_time} seconds")
        logger.info(f"  Report Interval: {self.report_interval} seconds")

        logger.info("=" * 60)
