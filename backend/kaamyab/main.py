"""Main FastAPI application for the Kaamyab analytics backend."""
from fastapi import FastAPI, Request

from kaamyab.api.routes.daily_context import router as daily_context_router
from kaamyab.api.routes.execution_profile import router as execution_profile_router
from kaamyab.api.routes.jobs import router as jobs_router
from kaamyab.api.routes.operating_style import router as operating_style_router
from kaamyab.api.routes.plan_history import router as plan_history_router
from kaamyab.core.config import settings
from kaamyab.core.context import request_id_from
from kaamyab.core.logging import configure_logging
from kaamyab.core.middleware import RequestIDMiddleware
from kaamyab.observability.client import flush_opik, init_opik
from kaamyab.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(plan_history_router)
app.include_router(operating_style_router)
app.include_router(execution_profile_router)
app.include_router(daily_context_router)
app.include_router(jobs_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.on_event("shutdown")
async def shutdown_observability() -> None:
    flush_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request_id_from(request)):
        return {"status": "ok"}
