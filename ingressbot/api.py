from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query

from . import __version__
from .api_models import EventOut, StatusResponse
from .runtime import RuntimeState
from .settings import Settings, settings as default_settings


def create_app(runtime: RuntimeState, settings: Settings = default_settings) -> FastAPI:
    """Status API for health checks and operators."""
    app = FastAPI(title="ingress-bot", version=__version__)

    @app.get("/health")
    def health() -> dict[str, str]:
        # A failed loop never resumes, so report it and let the kubelet restart us.
        if runtime.snapshot()["loop_state"] == "failed":
            raise HTTPException(status_code=503, detail="Reconciliation loop failed")
        return {"status": "healthy"}

    @app.get("/status", response_model=StatusResponse)
    def status() -> StatusResponse:
        return StatusResponse(**runtime.snapshot(), dry_run=settings.dry_run)

    @app.get("/events", response_model=list[EventOut])
    def events(limit: int = Query(20, ge=1, le=500)) -> list[EventOut]:
        return [EventOut(**e) for e in runtime.latest_events(limit)]

    return app
