"""
Run the proxy with uvicorn.

Usage:
    verdict-proxy
    # or:
    python -m verdict_proxy.server
"""

import uvicorn

from verdict_proxy.config.settings import settings
from verdict_proxy.log import get_logger

logger = get_logger(__name__)


def main() -> None:
    logger.info("Listening on http://%s:%d", settings.proxy.host, settings.proxy.port)
    uvicorn.run(
        "verdict_proxy.main:app",
        host=settings.proxy.host,
        port=settings.proxy.port,
        log_level=settings.log_level.lower(),
        # A single process keeps a single queue in front of the backend
        workers=1,
    )


if __name__ == "__main__":
    main()
