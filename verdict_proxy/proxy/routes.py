from fastapi import APIRouter, Depends

from verdict_proxy.core.exception_handler import proxy_exception_handler
from verdict_proxy.log import get_logger
from verdict_proxy.proxy.handler import ProxyHandler, get_handler
from verdict_proxy.proxy.schema import ErrorResponse, GenerateRequest, GenerateResponse, ProxyHealthResponse

logger = get_logger(__name__)

PROXY_PREFIX = "/v1/proxy"

# Generate endpoints are mounted without the service prefix so callers can
# point at the proxy exactly as they would at the backend.
router = APIRouter(tags=["proxy"])
health_router = APIRouter(prefix=PROXY_PREFIX, tags=["proxy"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses=ERROR_RESPONSES,
    summary="Queue an image inference request",
)
@router.post(
    "/api/generate",
    response_model=GenerateResponse,
    responses=ERROR_RESPONSES,
    summary="Queue an image inference request (backend-compatible path)",
)
@proxy_exception_handler
async def generate(request: GenerateRequest, handler: ProxyHandler = Depends(get_handler)) -> GenerateResponse:
    return await handler.generate(request)


@health_router.get(
    "/health",
    response_model=ProxyHealthResponse,
    summary="Proxy and queue health",
)
@proxy_exception_handler
async def health_check(handler: ProxyHandler = Depends(get_handler)) -> ProxyHealthResponse:
    return await handler.health_check()
