import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..logging_utils import trace_id_var

logger = logging.getLogger("content_understanding.service")

TRACE_HEADER = "X-Trace-Id"


class TraceLogMiddleware(BaseHTTPMiddleware):
    """Bind a trace id to the request (header or fresh uuid), echo it back and log one access event."""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        request.state.trace_id = trace_id
        token = trace_id_var.set(trace_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception({"event": "http.unhandled", "path": request.url.path, "error": str(e), "ms": _elapsed_ms(started)})
            raise
        else:
            logger.info(
                {
                    "event": "http.request",
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "ms": _elapsed_ms(started),
                }
            )
            response.headers[TRACE_HEADER] = trace_id
            return response
        finally:
            trace_id_var.reset(token)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
