"""Per-request context utilities."""
from __future__ import annotations

from contextvars import ContextVar
from typing import Any

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def request_id_from(request: Any) -> str | None:
    """Read the id RequestIDMiddleware stored on the request, falling back to the context var."""
    state = getattr(request, "state", None)
    return getattr(state, "request_id", None) or get_request_id()
