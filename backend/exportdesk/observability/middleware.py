"""Request correlation middleware.

Each HTTP request runs with a request id bound in the logging context. A
well-formed incoming X-Request-ID is reused; anything else gets a fresh id.
The id is unbound when the request ends, so scheduler callbacks that fire
later never log under a stale request id.
"""

import logging
import re
import time
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import bind_request_id, generate_request_id, reset_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(header_value: Optional[str]) -> str:
    if header_value and _REQUEST_ID_PATTERN.match(header_value):
        return header_value
    return generate_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = bind_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(f"{request.method} {request.url.path} {response.status_code} ({elapsed_ms:.1f}ms)")
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            logger.exception(f"{request.method} {request.url.path} raised")
            raise
        finally:
            reset_request_id(token)
