from fastapi.testclient import TestClient

from registrator.api import create_app
from registrator.reconciler import Outcome, ReconcileResult
from registrator.route53 import RegistrationTarget
from registrator.runtime import RuntimeState


def _runtime():
    runtime = RuntimeState(history_size=3)
    target = RegistrationTarget("web.service.discovery", "10.0.0.5")
    runtime.record(ReconcileResult(Outcome.CREATED, container_id="abc", status="start", target=target, action="CREATE"))
    runtime.record(ReconcileResult(Outcome.SKIPPED, container_id="def", status="start", reason="no dns.name label"))
    runtime.record(
        ReconcileResult(Outcome.FAILED, container_id="abc", status="die", target=target, action="DELETE", error="boom")
    )
    return runtime


def test_health():
    client = TestClient(create_app(_runtime()))
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["events_seen"] == 3
    assert body["last_event_at"]


def test_events_newest_first_and_limited():
    client = TestClient(create_app(_runtime()))
    r = client.get("/events", params={"limit": 2})
    assert r.status_code == 200
    items = r.json()
    assert [i["outcome"] for i in items] == ["failed", "skipped"]
    assert items[0]["record_name"] == "web.service.discovery."
    assert items[0]["error"] == "boom"
    assert items[1]["record_name"] is None


def test_events_rejects_bad_limit():
    client = TestClient(create_app(_runtime()))
    assert client.get("/events", params={"limit": 0}).status_code == 422


def test_history_is_bounded_and_stats_count_everything():
    runtime = _runtime()
    runtime.record(ReconcileResult(Outcome.NOT_FOUND, container_id="abc", status="stop"))
    assert len(runtime.latest(10)) == 3

    r = TestClient(create_app(runtime)).get("/stats")
    assert r.json() == {
        "created": 1,
        "already_exists": 0,
        "deleted": 0,
        "not_found": 1,
        "skipped": 1,
        "failed": 1,
    }
