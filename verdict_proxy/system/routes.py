import logging
from typing import Any

from fastapi import APIRouter, Request

from verdict_proxy.system.handler import get_queue_status, get_system_status

logger = logging.getLogger(__name__)

SYSTEM_PREFIX = "/v1/system"

router = APIRouter(prefix=SYSTEM_PREFIX, tags=["system"])


@router.get(
    "/queue",
    summary="Inspect the request queue",
    description="Queue depth, the task currently calling the backend and outcome counters",
)
async def get_queue(request: Request) -> dict[str, Any]:
    return get_queue_status(request.app.state.request_queue)


@router.get(
    "/status",
    summary="Get system status",
    description="Backend target, timeouts, body limit and available judging categories",
)
async def get_status(request: Request) -> dict[str, Any]:
    return get_system_status(request.app.state.settings)
