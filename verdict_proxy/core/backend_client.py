import asyncio
import logging
from typing import Any

import httpx

from verdict_proxy.core.exceptions import (
    BackendConnectionError,
    BackendHTTPError,
    BackendTimeoutError,
    MalformedJSONError,
)
from verdict_proxy.core.types import InferenceRequest

logger = logging.getLogger(__name__)


class BackendClient:
    """
    One-shot calls to the inference backend's generate endpoint.

    No retries: a failed call is reported to the caller as-is.
    """

    def __init__(
        self,
        generate_url: str,
        timeout_ms: int = 600_000,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.generate_url = generate_url
        self.timeout_ms = timeout_ms
        self._http_client = http_client
        self._own_client = http_client is None

    async def __aenter__(self):
        if self._own_client:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_ms / 1000),
                limits=httpx.Limits(max_keepalive_connections=1, max_connections=4),
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._own_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def call(self, request: InferenceRequest, timeout_ms: int | None = None) -> Any:
        """POST the request and return the decoded JSON payload"""
        if self._http_client is None:
            raise BackendConnectionError("HTTP client not initialized. Use async context manager.")

        budget_ms = timeout_ms if timeout_ms is not None else self.timeout_ms
        try:
            # wait_for cancels the in-flight request and releases its connection on expiry
            response = await asyncio.wait_for(
                self._http_client.post(self.generate_url, json=request.to_payload(), timeout=budget_ms / 1000),
                timeout=budget_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise BackendTimeoutError(
                f"Backend call timed out after {budget_ms} ms", details=f"timeout={budget_ms}ms"
            ) from e
        except httpx.RequestError as e:
            raise BackendConnectionError(
                f"Failed to connect to backend at {self.generate_url}", details=f"{type(e).__name__}: {e}"
            ) from e

        if not response.is_success:
            raise BackendHTTPError(response.status_code, self._error_body(response))

        try:
            return response.json()
        except (ValueError, RecursionError) as e:
            raise MalformedJSONError("Backend response is not valid JSON", details=response.text[:2000]) from e

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (ValueError, RecursionError):
            return response.text
