import logging

from fastapi import Request

from verdict_proxy.config.settings import BackendConfig
from verdict_proxy.core.exceptions import ValidationError
from verdict_proxy.core.normalizer import extract_candidate
from verdict_proxy.core.request_queue import SerialRequestQueue
from verdict_proxy.core.types import InferenceRequest

from .schema import GenerateRequest, GenerateResponse, ProxyHealthResponse

logger = logging.getLogger(__name__)


class ProxyHandler:
    """Forwards generate requests into the serial queue"""

    def __init__(self, queue: SerialRequestQueue, backend_config: BackendConfig):
        self.queue = queue
        self.backend_config = backend_config

    def _to_inference_request(self, request: GenerateRequest) -> InferenceRequest:
        allowed = self.backend_config.allowed_models
        if allowed and request.model not in allowed:
            raise ValidationError(f"Unknown model: {request.model}", details={"available": allowed})
        return InferenceRequest.from_payload(request.model_dump())

    async def generate(self, request: GenerateRequest) -> GenerateResponse:
        inference_request = self._to_inference_request(request)
        logger.info(
            "Received generate request, model=%s, first image size=%d bytes",
            inference_request.model,
            len(inference_request.images[0]),
        )

        payload = await self.queue.submit(inference_request)

        # Only the model output goes back; full backend payloads can be large
        shape, content = extract_candidate(payload)
        logger.debug("Backend payload shape: %s", shape.value)
        return GenerateResponse(response=content)

    async def health_check(self) -> ProxyHealthResponse:
        running = self.queue.is_running
        return ProxyHealthResponse(
            status="healthy" if running else "unhealthy",
            queue_running=running,
            queue_depth=self.queue.depth,
            backend_url=self.backend_config.generate_url,
        )


def get_handler(request: Request) -> ProxyHandler:
    return request.app.state.proxy_handler
