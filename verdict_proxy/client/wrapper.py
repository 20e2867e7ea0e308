"""
Caller-side request wrapper.

Builds the generate request for an image and a judging category, sends it
to the proxy under its own end-to-end timeout and normalizes whatever comes
back. Transport failures, timeouts and error responses become a failing
Verdict instead of an exception, so callers always get something to show.
"""

import asyncio
import base64
import logging
from pathlib import Path
from typing import Any

import aiofiles
import httpx

from verdict_proxy.config.prompts import PromptRegistry, prompt_registry
from verdict_proxy.config.settings import ClientConfig
from verdict_proxy.core.exceptions import ValidationError
from verdict_proxy.core.normalizer import normalize_response
from verdict_proxy.core.types import Verdict

logger = logging.getLogger(__name__)


def image_to_base64(image: str) -> str:
    """Accept a data URL (data:image/png;base64,...) or bare base64"""
    if image.startswith("data:"):
        _, sep, encoded = image.partition(",")
        if not sep or not encoded:
            raise ValidationError("Malformed image data URL")
        return encoded
    return image


async def encode_image_file(path: str | Path) -> str:
    """Read an image file and return it base64-encoded"""
    async with aiofiles.open(path, "rb") as f:
        data = await f.read()
    return base64.b64encode(data).decode("ascii")


class VerdictClient:
    """
    Submits images to the proxy and returns Verdicts.

    Use as an async context manager unless an httpx.AsyncClient is passed in.
    """

    def __init__(
        self,
        proxy_url: str | None = None,
        model: str | None = None,
        timeout_ms: int | None = None,
        registry: PromptRegistry = prompt_registry,
        http_client: httpx.AsyncClient | None = None,
    ):
        defaults = ClientConfig()
        self.proxy_url = proxy_url or defaults.proxy_url
        self.model = model or defaults.model
        self.timeout_ms = timeout_ms or defaults.timeout_ms
        self.registry = registry
        self._http_client = http_client
        self._own_client = http_client is None

    async def __aenter__(self):
        if self._own_client:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_ms / 1000))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._own_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def build_request(self, image: str, category: str) -> dict[str, Any]:
        """Raises ValidationError for an unknown category"""
        return {
            "model": self.model,
            "prompt": self.registry.build_prompt(category),
            "images": [image_to_base64(image)],
            "stream": False,
        }

    async def analyze_image(self, image: str, category: str) -> Verdict:
        body = self.build_request(image, category)
        if self._http_client is None:
            raise RuntimeError("HTTP client not initialized. Use async context manager.")

        try:
            response = await asyncio.wait_for(
                self._http_client.post(self.proxy_url, json=body, timeout=self.timeout_ms / 1000),
                timeout=self.timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning("Request to %s timed out after %d ms", self.proxy_url, self.timeout_ms)
            return Verdict.failure(
                f"Failed to reach the AI service ({type(e).__name__}: no response within {self.timeout_ms} ms)"
            )
        except httpx.RequestError as e:
            logger.warning("Request to %s failed: %s: %s", self.proxy_url, type(e).__name__, e)
            return Verdict.failure(f"Failed to reach the AI service ({type(e).__name__}: {e})")

        try:
            data = response.json()
        except (ValueError, RecursionError):
            logger.warning("AI response is not JSON, raw content: %s", response.text[:500])
            return Verdict.failure("AI response could not be parsed as JSON")

        if not response.is_success:
            return Verdict.failure(self._describe_error(response.status_code, data))

        logger.debug("Raw AI response: %s", data)
        return normalize_response(data)

    async def analyze_file(self, path: str | Path, category: str) -> Verdict:
        return await self.analyze_image(await encode_image_file(path), category)

    @staticmethod
    def _describe_error(status_code: int, data: Any) -> str:
        if isinstance(data, dict) and "error" in data:
            message = str(data["error"])
            if data.get("details") is not None:
                message = f"{message}: {data['details']}"
        elif isinstance(data, dict) and "detail" in data:
            message = str(data["detail"])
        else:
            message = str(data)
        return f"AI service error (HTTP {status_code}): {message}"
