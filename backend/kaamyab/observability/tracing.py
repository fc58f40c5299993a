"""Opik traces around analytics routes, style summaries and scheduled jobs."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from kaamyab.core.context import get_request_id
from kaamyab.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


def with_request_context(
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Copy of ``metadata`` carrying the user and request ids when known."""
    payload = dict(metadata or {})
    if user_id:
        payload.setdefault("user_id", str(user_id))
    request_id = request_id or get_request_id()
    if request_id:
        payload.setdefault("request_id", request_id)
    return payload


def trace_tags(name: str) -> List[str]:
    # "operating_style.regenerate" is filed under "operating_style".
    return [name.split(".", 1)[0]]


def _end_trace(opik_trace: "Trace", name: str, error: Optional[BaseException]) -> None:
    if error is not None:
        try:
            opik_trace.update(error_info={"message": str(error)})
        except Exception:  # pragma: no cover
            logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
    try:
        opik_trace.end()
    except Exception:  # pragma: no cover
        logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Wrap a block in an Opik trace tagged with its area.

    A no-op while Opik is off. Errors raised inside the block are recorded on
    the trace and re-raised.
    """
    client = get_opik_client()
    opik_trace: Optional["Trace"] = None
    if client:
        payload = with_request_context(metadata, user_id, request_id)
        try:
            opik_trace = client.trace(name=name, metadata=payload or None, tags=trace_tags(name))
        except Exception as exc:  # pragma: no cover - exporter failure
            logger.debug("Unable to start Opik trace %s: %s", name, exc)

    error: Optional[BaseException] = None
    try:
        yield opik_trace
    except Exception as exc:
        error = exc
        raise
    finally:
        if opik_trace:
            _end_trace(opik_trace, name, error)
