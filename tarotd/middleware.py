"""
Middleware for the HTTP API
"""
import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from tarotd.models import ErrorResponse

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


def request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


async def request_context_middleware(request: Request, call_next):
    """Tag every request with an id and log it once it is done."""
    rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = rid
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception("internal error request_id=%s", rid)
        response = JSONResponse(
            status_code=500,
            content=ErrorResponse(error="internal error", request_id=rid).model_dump(),
        )

    latency_ms = int((time.perf_counter() - start_time) * 1000)
    response.headers[REQUEST_ID_HEADER] = rid
    logger.info(
        "request request_id=%s method=%s path=%s status=%d latency_ms=%d",
        rid, request.method, request.url.path, response.status_code, latency_ms,
    )
    return response
