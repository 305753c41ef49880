import secrets
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.logging import logger


REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a fresh id (``request.state.request_id``) and logs
    it on the way in and out.

    Only the path is logged; query strings stay out of the log files.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        request_id = secrets.token_hex(8)
        request.state.request_id = request_id

        logger.request("HTTP request", request_id, method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled {type(e).__name__} while serving {request.method} {request.url.path}",
                request_id=request_id,
            )
            raise

        elapsed = time.perf_counter() - started
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id

        # Streaming bodies are still being produced at this point
        logger.response(
            "HTTP request",
            request_id,
            status_code=response.status_code,
            method=request.method,
            path=request.url.path,
            processing_time_ms=round(elapsed * 1000),
        )
        return response
