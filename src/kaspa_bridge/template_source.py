"""Block template source backed by a Kaspa node's JSON-RPC interface."""

import itertools
import json
import logging
from typing import Any, Protocol

import httpx

from .exceptions import BridgeConnectionError, UpstreamUnavailable
from .models import BlockTemplate

logger = logging.getLogger(__name__)


class TemplateSource(Protocol):
    """Anything that can hand out the node's newest block template."""

    async def fetch(self) -> BlockTemplate:
        """Return a fresh template or raise ``UpstreamUnavailable``."""
        ...


class KaspadTemplateSource:
    """Fetches block templates from a kaspad node over JSON-RPC/HTTP.

    The payout address and client identifier are fixed at construction and
    sent with every ``getBlockTemplate`` request. No retry is attempted here;
    the refresh loop owns the retry policy.
    """

    def __init__(
        self,
        address: str,
        pay_address: str,
        extra_data: str,
        request_timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        """
        Initialize the template source.

        Args:
            address: Node address, ``host:port`` or an http(s) URL
            pay_address: Address that receives the coinbase reward
            extra_data: Client identifier embedded in the coinbase
            request_timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.address: str = address
        self.url: str = address if address.startswith(("http://", "https://")) else f"http://{address}"
        self.pay_address: str = pay_address
        self.extra_data: str = extra_data
        self.request_timeout: float = request_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Open the HTTP client and check the node answers.

        Raises:
            BridgeConnectionError: If the node cannot be reached
        """
        logger.info(f"Connecting to kaspad at {self.url}")
        self._client = httpx.AsyncClient(
            base_url=self.url,
            timeout=self.request_timeout,
            transport=self._transport
        )
        try:
            info = await self._call("getInfo", {})
        except (httpx.HTTPError, ValueError) as e:
            await self.close()
            raise BridgeConnectionError(
                f"Failed to connect to kaspad at {self.url}: {e}",
                address=self.address
            ) from e

        if isinstance(info, dict):
            logger.info(
                f"Connected to kaspad {info.get('serverVersion', 'unknown version')} "
                f"(synced: {info.get('isSynced', 'unknown')})"
            )
        else:
            logger.info("Connected to kaspad")

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        """Issue one JSON-RPC request and return its ``result``.

        Raises:
            httpx.HTTPError: On transport failures and non-2xx statuses
            ValueError: On invalid JSON or a JSON-RPC error response
        """
        if self._client is None:
            raise RuntimeError("KaspadTemplateSource.connect() must be called first")

        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.debug(f"Posting {method} to {self.url}")
        response: httpx.Response = await self._client.post("", json=payload)
        response.raise_for_status()

        try:
            body: Any = response.json()
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON from node: {e}") from e

        match body:
            case {"error": {"message": message}}:
                raise ValueError(f"{method} failed: {message}")
            case {"error": error} if error is not None:
                raise ValueError(f"{method} failed: {error}")
            case {"result": result}:
                return result
            case _:
                raise ValueError(f"Unexpected {method} response: {body!r}")

    async def fetch(self) -> BlockTemplate:
        """Fetch the node's current block template.

        Returns:
            A new BlockTemplate instance

        Raises:
            UpstreamUnavailable: If the request or the response is bad
        """
        try:
            result = await self._call(
                "getBlockTemplate",
                {"payAddress": self.pay_address, "extraData": self.extra_data}
            )
            template = BlockTemplate.from_rpc(result)
        except (httpx.HTTPError, ValueError, RuntimeError) as e:
            raise UpstreamUnavailable(
                f"failed fetching new block template from kaspa: {e}"
            ) from e

        if not template.is_synced:
            logger.warning("kaspad reports it is not synced; template may be stale")
        return template

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
