"""HTTP request logging.

Every routed request is logged twice: once on arrival ("Incoming Request")
and once on completion, at INFO for successful responses and WARNING for
statuses of 400 and above.  Domain errors, HTTP errors and request
validation failures are logged with the status the exception handlers will
answer with; any other exception is logged at ERROR with a traceback.  The
exception is always re-raised for the handlers registered in
:mod:`astroimage.api.main`.

Logging is attached per route through :class:`LoggingRoute`, installed with
``APIRouter(route_class=LoggingRoute)``.  Endpoints decorated with
:func:`skip_logging` get the plain route handler; the image streaming route
uses this so binary downloads do not flood the log.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import Response

from astroimage.core.errors import AppError

logger = logging.getLogger(__name__)

_SKIP_ATTR = "_skip_request_logging"


def skip_logging(endpoint: Callable) -> Callable:
    """Mark a route endpoint as excluded from request logging."""
    setattr(endpoint, _SKIP_ATTR, True)
    return endpoint


def _error_status(exc: Exception) -> int | None:
    """Return the status an exception will be answered with, if it is expected."""
    if isinstance(exc, (AppError, HTTPException)):
        return exc.status_code
    if isinstance(exc, RequestValidationError):
        return 400
    return None


def _log_completion(method: str, url: str, status_code: int, delay: float, size: str) -> None:
    details = f"{method} {url} status={status_code} delay={delay:.0f}ms size={size}"
    if status_code >= 400:
        logger.warning(f"Request Completed with Error Status {details}")
    else:
        logger.info(f"Request Completed Successfully {details}")


class LoggingRoute(APIRoute):
    """API route that logs each request it handles."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()
        if getattr(self.endpoint, _SKIP_ATTR, False):
            return handler

        async def logged_handler(request: Request) -> Response:
            method = request.method
            url = str(request.url)
            client_ip = request.client.host if request.client else "-"
            user_agent = request.headers.get("user-agent", "")
            logger.info(f"Incoming Request {method} {url} ip={client_ip} user_agent={user_agent!r}")

            start = time.perf_counter()
            try:
                response = await handler(request)
            except Exception as exc:
                delay = (time.perf_counter() - start) * 1000
                status_code = _error_status(exc)
                if status_code is None:
                    logger.exception(f"Request Failed with Exception {method} {url} delay={delay:.0f}ms")
                else:
                    _log_completion(method, url, status_code, delay, "-")
                raise

            delay = (time.perf_counter() - start) * 1000
            size = response.headers.get("content-length", "-")
            _log_completion(method, url, response.status_code, delay, size)
            return response

        return logged_handler
