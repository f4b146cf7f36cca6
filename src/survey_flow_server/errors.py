"""Global exception handlers that turn SDK errors into HTTP responses.

Every ``FormError`` already knows its status code, so routes never catch
them.  The full message and location ids are logged server-side; the
client receives ``FormError.to_detail()``, in which integrity errors carry
a generic message instead of graph internals.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from survey_flow.errors import FormError

logger = logging.getLogger(__name__)


async def form_error_handler(request: Request, exc: FormError) -> JSONResponse:
    """Map a ``FormError`` to its ``status_code`` and client-safe body."""
    if exc.status_code >= 500:
        logger.error(
            "%s [%d] at %s: %s %s",
            type(exc).__name__, exc.status_code, request.url, exc.message, exc.context,
        )
    else:
        logger.warning(
            "%s [%d] at %s: %s",
            type(exc).__name__, exc.status_code, request.url, exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_detail())


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: log the traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
