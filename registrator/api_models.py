from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "healthy"
    uptime_s: float
    events_seen: int
    last_event_at: str | None = None


class ActivityItem(BaseModel):
    ts: str
    outcome: str = Field(..., description="created|already_exists|deleted|not_found|skipped|failed")
    container_id: str
    status: str = Field(..., description="Raw lifecycle status, or 'sync' for startup sync")
    record_name: str | None = None
    value: str | None = None
    action: str = ""
    error: str = ""
    reason: str = ""
