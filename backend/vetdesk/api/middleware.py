import logging
import time
import uuid

from fastapi import Request, Response

from vetdesk.core.logging import bind_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context_middleware(request: Request, call_next) -> Response:
    """
    Assign a request id, bind it to the log context and log the request.

    A client-supplied X-Request-ID is reused; otherwise a new one is generated.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    bind_request_id(request_id)

    started = time.perf_counter()
    logger.debug("request_started %s %s", request.method, request.url.path)

    response = await call_next(request)

    duration_ms = (time.perf_counter() - started) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "request_completed %s %s status=%d duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response
