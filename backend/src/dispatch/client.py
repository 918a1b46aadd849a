"""Outbound HTTP dispatch for resolved requests."""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Any

import httpx

from templating.models import ResolvedRequest
from utils.config import settings

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """No response was received for a dispatched request."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


@dataclass
class DispatchResponse:
    """A received HTTP response."""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    data: Any = None
    elapsed_ms: int = 0


class HttpDispatcher:
    """Sends resolved requests through one pooled ``httpx.AsyncClient``.

    The dispatcher owns its client and therefore its connection pool; whoever
    creates the dispatcher is responsible for calling :meth:`close`.
    """

    def __init__(self, timeout: float = None, retry_count: int = None,
                 retry_delay: float = None, max_connections: int = None,
                 keepalive_expiry: float = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.retry_count = retry_count if retry_count is not None else settings.dispatch_retry_count
        self.retry_delay = retry_delay if retry_delay is not None else settings.dispatch_retry_delay

        limits = httpx.Limits(
            max_connections=max_connections or settings.max_connections,
            max_keepalive_connections=max_connections or settings.max_connections,
            keepalive_expiry=keepalive_expiry if keepalive_expiry is not None else settings.keepalive_expiry,
        )
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=limits,
            follow_redirects=False,
            transport=transport,
        )

    async def send(self, request: ResolvedRequest) -> DispatchResponse:
        """Send a request once, retrying transport failures if configured."""
        attempt = 0
        while True:
            try:
                return await self._send_once(request)
            except httpx.TimeoutException as e:
                raise DispatchError(f"Request timed out after {self.timeout}s: {e}") from e
            except (httpx.InvalidURL, ValueError) as e:
                # Raised while building the request, e.g. a non-ASCII header value.
                raise DispatchError(f"Request could not be sent: {e}") from e
            except httpx.HTTPError as e:
                if attempt >= self.retry_count:
                    raise DispatchError(str(e) or type(e).__name__) from e

                delay = self.retry_delay * (2 ** attempt) + random.uniform(0, 0.3)
                logger.warning(
                    f"Retry attempt {attempt + 1}/{self.retry_count} for {request.method.value} "
                    f"{request.url} in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _send_once(self, request: ResolvedRequest) -> DispatchResponse:
        headers = request.header_map()
        content = None
        if request.body:
            content = request.body.encode("utf-8")
            if not any(key.lower() == "content-type" for key in headers):
                headers["Content-Type"] = "application/json"

        start_time = time.perf_counter()
        response = await self._client.request(
            method=request.method.value,
            url=request.url,
            headers=headers,
            content=content,
        )
        elapsed_ms = int(round((time.perf_counter() - start_time) * 1000))

        return DispatchResponse(
            status=response.status_code,
            headers={k: v for k, v in response.headers.items()},
            data=self._decode_body(response),
            elapsed_ms=elapsed_ms,
        )

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                logger.debug(f"Response declared JSON but did not parse: {response.url}")
        return response.text

    async def close(self) -> None:
        """Close the underlying client and its pooled connections."""
        await self._client.aclose()
