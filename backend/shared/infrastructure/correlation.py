"""
Request correlation for log records.

Every request gets an id (taken from X-Request-ID or generated) and, once the
bearer token is resolved, the masked id of the acting user. Both ride on
context variables so any log line written while serving the request, down to
a failed commit, names the request and the actor behind it.
"""

import uuid
from contextvars import ContextVar
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config.logging import mask_actor_id

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_var: ContextVar[str] = ContextVar("actor", default="")


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def bind_actor(actor_id: Any) -> None:
    """Attach the acting user to log records of the current request."""
    actor_var.set(mask_actor_id(actor_id))


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Reads or generates the request id and echoes it in the response.

    A caller-supplied X-Request-ID is kept as is, so a client can match its
    own logs with the server's.
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())

        request_token = request_id_var.set(request_id)
        actor_token = actor_var.set("")
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            actor_var.reset(actor_token)
            request_id_var.reset(request_token)


class CorrelationIdFilter:
    """
    Logging filter copying request_id and actor onto each record.

    Records logged outside a request get "-" for both.
    """

    def filter(self, record) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.actor = actor_var.get() or "-"
        return True
