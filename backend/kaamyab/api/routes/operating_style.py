"""Operating style profile API routes."""
from __future__ import annotations

from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from kaamyab.api.schemas.operating_style import (
    OperatingStyleHintResponse,
    OperatingStyleRegenerateRequest,
    OperatingStyleResponse,
)
from kaamyab.core.context import request_id_from
from kaamyab.db.deps import get_db
from kaamyab.observability.metrics import log_metric
from kaamyab.observability.tracing import trace
from kaamyab.services.operating_style import DIMENSION_METADATA, generate_operating_style_hint
from kaamyab.services.profile_service import (
    OperatingStyleResult,
    load_operating_style,
    regenerate_operating_style,
)

router = APIRouter()


def _response(user_id: UUID, result: OperatingStyleResult, request_id: str | None) -> OperatingStyleResponse:
    return OperatingStyleResponse(
        user_id=user_id,
        profile=result.profile,
        has_enough_data=result.has_enough_data,
        plan_count=result.plan_count,
        dimensions_meta=DIMENSION_METADATA,
        request_id=request_id or "",
    )


@router.get("/operating-style", response_model=OperatingStyleResponse, tags=["operating-style"])
def get_operating_style(
    http_request: Request,
    user_id: UUID = Query(..., description="User whose operating style to load"),
    db: Session = Depends(get_db),
) -> OperatingStyleResponse:
    """Return the profile, rebuilding it when enough new plans have been archived."""
    request_id = request_id_from(http_request)
    start = perf_counter()
    with trace(
        "operating_style.get",
        metadata={"route": "/operating-style"},
        user_id=str(user_id),
        request_id=request_id,
    ):
        result = load_operating_style(db, user_id, request_id=request_id)

    log_metric(
        "operating_style.get.latency_ms",
        (perf_counter() - start) * 1000,
        metadata={"regenerated": result.regenerated},
    )
    return _response(user_id, result, request_id)


@router.post(
    "/operating-style/regenerate",
    response_model=OperatingStyleResponse,
    tags=["operating-style"],
)
def post_regenerate_operating_style(
    http_request: Request,
    payload: OperatingStyleRegenerateRequest,
    db: Session = Depends(get_db),
) -> OperatingStyleResponse:
    request_id = request_id_from(http_request)
    with trace(
        "operating_style.regenerate",
        metadata={"route": "/operating-style/regenerate"},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        result = regenerate_operating_style(db, payload.user_id, request_id=request_id)

    log_metric("operating_style.regenerate", 1 if result.regenerated else 0)
    return _response(payload.user_id, result, request_id)


@router.get(
    "/operating-style/hint",
    response_model=OperatingStyleHintResponse,
    tags=["operating-style"],
)
def get_operating_style_hint(
    http_request: Request,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
) -> OperatingStyleHintResponse:
    request_id = request_id_from(http_request)
    with trace("operating_style.hint", user_id=str(user_id), request_id=request_id):
        result = load_operating_style(db, user_id, request_id=request_id)
        hint = generate_operating_style_hint(result.profile)
    return OperatingStyleHintResponse(user_id=user_id, hint=hint, request_id=request_id or "")
