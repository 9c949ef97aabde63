"""
Request ID middleware for FastAPI.

Generates (or accepts) a request_id for each incoming request. The request_id is:
- Added to the request state
- Added to response headers (X-Request-ID)
- Set in context variables so all logs in this request include it
"""

import uuid
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import set_request_id, clear_request_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request_id to each request and to its log context."""

    async def dispatch(self, request: Request, call_next):
        # Reuse an upstream request id when a gateway already assigned one
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        set_request_id(request_id)

        try:
            logger.info(f"{request.method} {request.url.path} - Request started")

            response: Response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                f"{request.method} {request.url.path} - Request completed with status {response.status_code}"
            )

            return response

        except Exception as e:
            logger.error(f"{request.method} {request.url.path} - Request failed: {e}")
            raise
        finally:
            clear_request_id()
