"""HTTP transport used to reach the completion endpoint and HTTP tools.

The transport performs single requests and reports the status and body
of every response it receives; only failures to obtain a response at all
(connection errors, timeouts) are raised.
"""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
import backoff

from chatrelay.core.errors import TransportError
from chatrelay.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """A response received from a remote endpoint.

    Attributes:
        status: HTTP status code
        headers: Response headers
        data: Decoded JSON body when the body is JSON, otherwise the raw text
    """

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def body_text(raw: bytes, charset: Optional[str] = None) -> str:
    """Decode raw body bytes; undecodable bytes become U+FFFD."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def decode_body(text: str) -> Any:
    """Decode a response body, falling back to the raw text."""
    if not text:
        return text
    try:
        return json.loads(text)
    except ValueError:
        return text


class Transport(ABC):
    """Base interface for HTTP transports."""

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        data: Any = None,
        timeout: Optional[float] = None
    ) -> TransportResponse:
        """Perform one HTTP request.

        Args:
            method: HTTP method
            url: Target URL
            headers: Request headers
            json: Body to send JSON-encoded
            data: Raw body to send as is
            timeout: Total timeout in seconds, None to wait indefinitely

        Returns:
            The response, whatever its status code

        Raises:
            TransportError: If no response could be obtained
        """
        pass

    async def post(self, url: str, **kwargs: Any) -> TransportResponse:
        return await self.request("POST", url, **kwargs)

    async def close(self) -> None:
        """Release any held resources."""
        return None

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class AiohttpTransport(Transport):
    """Transport backed by a shared :class:`aiohttp.ClientSession`.

    Attributes:
        BASE_DELAY (float): Delay in seconds before the first retry, doubled per attempt
        max_tries (int): Attempts per request on connection errors; 1 disables retry
    """

    BASE_DELAY = 1.0

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        max_tries: int = 1
    ):
        """Initialize the transport.

        Args:
            session: Optional externally managed session; one is created lazily otherwise
            max_tries: Attempts per request when the connection fails
        """
        self._session = session
        self._owns_session = session is None
        self.max_tries = max(1, max_tries)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        json: Any = None,
        data: Any = None,
        timeout: Optional[float] = None
    ) -> TransportResponse:
        start_time = time.time()
        send = backoff.on_exception(
            backoff.expo,
            (aiohttp.ClientConnectionError, asyncio.TimeoutError),
            max_tries=self.max_tries,
            factor=self.BASE_DELAY
        )(self._send)

        try:
            response = await send(method, url, headers, json, data, timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            duration = time.time() - start_time
            message = str(e) or type(e).__name__
            logger.error("HTTP request failed", extra={
                "method": method,
                "url": sanitize_log_message(url),
                "error": sanitize_log_message(message),
                "duration_ms": int(duration * 1000)
            })
            raise TransportError(message) from e

        duration = time.time() - start_time
        logger.debug("HTTP request completed", extra={
            "method": method,
            "url": sanitize_log_message(url),
            "status": response.status,
            "duration_ms": int(duration * 1000)
        })
        return response

    async def _send(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]],
        json_body: Any,
        data: Any,
        timeout: Optional[float]
    ) -> TransportResponse:
        session = await self._get_session()
        kwargs: Dict[str, Any] = {"headers": headers}
        if json_body is not None:
            kwargs["json"] = json_body
        elif data is not None:
            kwargs["data"] = data
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        async with session.request(method, url, **kwargs) as response:
            raw = await response.read()
            return TransportResponse(
                status=response.status,
                headers=dict(response.headers),
                data=decode_body(body_text(raw, response.charset))
            )

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
