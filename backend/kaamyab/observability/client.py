"""Process-wide Opik client shared by the API routes and the scheduler worker."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from opik import Opik

from kaamyab.core.config import settings

logger = logging.getLogger(__name__)

_client: Optional[Opik] = None
_client_lock = Lock()
_init_attempted = False


def _build_client() -> Optional[Opik]:
    if not settings.opik_enabled:
        return None
    if not settings.opik_api_key:
        logger.warning("OPIK_ENABLED is set without OPIK_API_KEY; analytics traces are not exported")
        return None
    try:
        client = Opik(project_name=settings.opik_project, api_key=settings.opik_api_key)
    except Exception as exc:  # opik surfaces config and network failures with its own types
        logger.warning("Opik client for project %s failed to start: %s", settings.opik_project, exc)
        return None
    logger.info("Exporting analytics traces to Opik project %s", settings.opik_project)
    return client


def init_opik() -> Optional[Opik]:
    """Build the shared client on first use and return it.

    Construction runs under the lock; concurrent first callers block until it
    finishes and all of them see the same client (or ``None`` when disabled).
    """
    global _client, _init_attempted

    with _client_lock:
        if not _init_attempted:
            _client = _build_client()
            _init_attempted = True
        return _client


def get_opik_client() -> Optional[Opik]:
    if _init_attempted:
        return _client
    return init_opik()


def flush_opik() -> None:
    """Send buffered traces; called when the API or the worker shuts down."""
    client = _client
    if client is None:
        return
    try:
        client.flush()
    except Exception as exc:
        logger.warning("Unsent Opik traces dropped at shutdown: %s", exc)


def reset_opik() -> None:
    """Forget the cached client so the next call re-reads settings."""
    global _client, _init_attempted

    with _client_lock:
        _client = None
        _init_attempted = False
