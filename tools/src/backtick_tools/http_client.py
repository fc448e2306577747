"""
Retrying HTTP client for upstream APIs.

Issues one logical request per ``execute`` call, retrying transient failures
(no response, 5xx) with bounded exponential backoff and turning every terminal
failure into a ``ClassifiedError``. 4xx responses are never retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from backtick_tools.errors import (
    ClassifiedError,
    UpstreamClientError,
    UpstreamNetworkError,
    UpstreamServerError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff, delays in seconds."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be greater than zero")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must not be lower than base_delay")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt ``attempt`` (1-indexed)."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)


@dataclass(frozen=True)
class RequestSpec:
    method: str
    path: str
    params: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


def _is_retryable_status(status_code: int) -> bool:
    return 500 <= status_code < 600


def _error_details(response: httpx.Response) -> tuple[str | None, str | None]:
    """Pull (message, code) out of an error body, if it has either."""
    try:
        payload = response.json()
    except ValueError:
        return None, None

    if not isinstance(payload, dict):
        return None, None

    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        code = error.get("code")
        return (
            message if isinstance(message, str) and message else None,
            code if isinstance(code, str) and code else None,
        )
    if isinstance(error, str) and error:
        return error, None

    message = payload.get("message")
    if isinstance(message, str) and message:
        return message, None
    return None, None


class RetryableHttpClient:
    """
    Async HTTP client applying a RetryPolicy to every request.

    Each ``execute`` call carries its own attempt counter, so concurrent calls
    never share retry state. Backoff suspends only the calling task; if that
    task is cancelled no further attempts are scheduled.

    Usage:
        client = RetryableHttpClient("https://api.cal.com", service_name="Cal.com")
        body = await client.execute(RequestSpec("GET", "/v1/event-types"))
    """

    def __init__(
        self,
        base_url: str,
        policy: RetryPolicy | None = None,
        *,
        service_name: str = "upstream",
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.policy = policy or RetryPolicy()
        self.service_name = service_name
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def execute(self, spec: RequestSpec) -> Any:
        """
        Run a request until it succeeds or fails terminally.

        Returns:
            The parsed JSON body of the first 2xx response

        Raises:
            UpstreamClientError: 4xx response, after a single attempt
            UpstreamServerError: 5xx responses on every allowed attempt
            UpstreamNetworkError: no response on every allowed attempt
            ClassifiedError: any other non-2xx status, or a 2xx body that is not JSON
        """
        attempt = 1
        while True:
            try:
                response = await self._client.request(
                    spec.method,
                    spec.path,
                    params=spec.params,
                    headers=spec.headers,
                )
            except httpx.TransportError as e:
                if attempt >= self.policy.max_attempts:
                    raise UpstreamNetworkError(
                        f"Network error: Unable to reach {self.service_name} API"
                    ) from e
                await self._backoff(attempt, f"network error ({type(e).__name__})")
                attempt += 1
                continue

            if response.is_success:
                try:
                    return response.json()
                except ValueError as e:
                    raise ClassifiedError(
                        f"Invalid JSON in {self.service_name} API response",
                        status_code=response.status_code,
                        code="INVALID_RESPONSE",
                    ) from e

            if _is_retryable_status(response.status_code) and attempt < self.policy.max_attempts:
                await self._backoff(attempt, f"HTTP {response.status_code}")
                attempt += 1
                continue

            raise self._classify(response)

    async def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.policy.delay_for(attempt)
        logger.warning(
            f"[retry] {self.service_name} request failed with {reason}, "
            f"retrying in {delay:.2f}s (attempt {attempt}/{self.policy.max_attempts})"
        )
        await self._sleep(delay)

    def _classify(self, response: httpx.Response) -> ClassifiedError:
        status = response.status_code
        message, code = _error_details(response)
        message = message or f"HTTP {status} error"

        if 400 <= status < 500:
            return UpstreamClientError(message, status_code=status, code=code)
        if _is_retryable_status(status):
            return UpstreamServerError(message, status_code=status, code=code)
        return ClassifiedError(message, status_code=status, code=code)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RetryableHttpClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
