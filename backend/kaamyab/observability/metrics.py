"""Point metrics (day types, profile writes, job counts) sent as Opik traces."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from kaamyab.observability.client import get_opik_client
from kaamyab.observability.tracing import trace_tags, with_request_context

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    client = get_opik_client()
    if not client:
        return

    payload = with_request_context({"value": value, **(metadata or {})})
    try:
        client.trace(name=f"metric:{name}", metadata=payload, tags=["metric", *trace_tags(name)])
    except Exception as exc:  # pragma: no cover - exporter failure
        logger.debug("Unable to record metric %s: %s", name, exc)
