from __future__ import annotations

from dataclasses import asdict

from fastapi import FastAPI, Query

from .api_models import ActivityItem, HealthResponse
from .runtime import RuntimeState


def create_app(runtime: RuntimeState) -> FastAPI:
    app = FastAPI(title="route53-registrator")

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        with runtime.lock:
            seen, last = runtime.events_seen, runtime.last_event_at
        return HealthResponse(uptime_s=runtime.uptime_s(), events_seen=seen, last_event_at=last)

    @app.get("/events", response_model=list[ActivityItem])
    def events(limit: int = Query(50, ge=1, le=1000)) -> list[ActivityItem]:
        return [ActivityItem(**asdict(e)) for e in runtime.latest(limit)]

    @app.get("/stats")
    def stats() -> dict[str, int]:
        return runtime.stats()

    return app
