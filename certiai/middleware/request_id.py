# certiai/middleware/request_id.py
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Neemt X-Request-ID over (of maakt er een) en zet hem terug op de response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(HEADER) or uuid4().hex
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[HEADER] = request_id
        return response
