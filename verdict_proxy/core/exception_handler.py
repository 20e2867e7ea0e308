from functools import wraps
import logging
from typing import Any, Callable

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from verdict_proxy.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "details": details})


def proxy_exception_handler(func: Callable) -> Callable:
    """
    Exception handler for proxy routes.

    Errors are answered with an ``{error, details}`` body:
    - ServiceError: Uses the exception's http_status
    - HTTPException: re-raised for FastAPI to handle
    - Exception: 500 Internal Server Error
    """

    @wraps(func)
    async def inner_function(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except ServiceError as e:
            return error_response(e.http_status, str(e), e.details)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception("Unexpected error in %s", func.__name__)
            return error_response(500, "Internal server error", str(e))

    return inner_function
