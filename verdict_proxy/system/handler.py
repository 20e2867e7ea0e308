import logging
from typing import Any

from verdict_proxy.config.prompts import prompt_registry
from verdict_proxy.config.settings import AppSettings
from verdict_proxy.core.request_queue import SerialRequestQueue

logger = logging.getLogger(__name__)


def get_queue_status(queue: SerialRequestQueue) -> dict[str, Any]:
    """
    Snapshot of the serial request queue.

    Args:
        queue: The process-wide request queue

    Returns:
        Dictionary with depth, the active task and outcome counters
    """
    return queue.stats()


def get_system_status(app_settings: AppSettings) -> dict[str, Any]:
    """
    Get configuration relevant to operating the proxy.

    Returns:
        Dictionary containing backend, limits and category information
    """
    backend = app_settings.backend
    return {
        "backend_url": backend.generate_url,
        "backend_timeout_ms": backend.timeout_ms,
        "allowed_models": backend.allowed_models or None,
        "max_body_mb": app_settings.proxy.max_body_mb,
        "categories": prompt_registry.list_categories(),
    }
