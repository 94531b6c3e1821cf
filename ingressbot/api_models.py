from __future__ import annotations

from pydantic import BaseModel, Field


class PassSummary(BaseModel):
    created: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)


class StatusResponse(BaseModel):
    loop_state: str = Field(..., description="idle|running|stopped|failed")
    passes: int = Field(0, ge=0, description="Passes started since process start")
    last_started_at: str | None = None
    last_finished_at: str | None = None
    last_result: PassSummary | None = None
    last_error: str | None = None
    dry_run: bool = False


class EventOut(BaseModel):
    id: int
    ts: str
    level: str
    message: str
