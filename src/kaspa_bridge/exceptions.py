"""Exception hierarchy for the Kaspa template bridge.

Startup errors (``ConfigError``, ``BridgeConnectionError``) end the process.
Steady-state errors are handled inside the refresh loop and never escape it.
"""


class BridgeError(Exception):
    """Base exception for all bridge errors."""


class ConfigError(BridgeError):
    """Configuration file is missing, unreadable or invalid."""


class BridgeConnectionError(BridgeError):
    """Could not connect to the node or the publish sink at startup."""

    def __init__(self, message: str, *, address: str = "") -> None:
        self.address = address
        super().__init__(message)


class UpstreamUnavailable(BridgeError):
    """A single block template fetch failed."""


class EncodingError(BridgeError):
    """A fetched template could not be serialized."""


class PublishError(BridgeError):
    """The sink rejected or could not deliver a payload."""

    def __init__(self, message: str, *, channel: str = "") -> None:
        self.channel = channel
        super().__init__(message)
