from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from looter.deps.pipeline import get_cache, get_pipeline, get_result_store
from looter.main import app
from looter.models.killmail import Attacker, Killmail, Victim, ZkbStats
from looter.services.cache import ResponseCache
from looter.services.errors import RateLimited, UpstreamListError
from looter.services.pipeline import KillPipeline
from looter.services.result_store import ResultStore

LINK = "https://zkillboard.com/corporation/98000001/"
WINDOW = {"start_date": "2024-05-01", "end_date": "2024-05-20"}


def _kill(killmail_id, dropped, *pilots):
    return Killmail(
        killmail_id=killmail_id,
        killmail_time=datetime(2024, 5, 10, 12, tzinfo=timezone.utc),
        zkb=ZkbStats(hash="h", droppedValue=dropped),
        victim=Victim(),
        attackers=[Attacker(character_id=i, character_name=n) for i, n in enumerate(pilots)],
    )


class StubPipeline:
    def __init__(self, result=None, error=None):
        self.result = result or []
        self.error = error
        self.calls = []

    async def fetch(self, user_link, cutoff):
        self.calls.append((user_link, cutoff))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def store():
    return ResultStore()


@pytest.fixture
def client_for(store):
    def _build(pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_result_store] = lambda: store
        return TestClient(app)

    yield _build
    app.dependency_overrides.clear()


def test_index_defaults(client_for):
    client = client_for(StubPipeline())

    response = client.get("/")

    assert response.status_code == 200
    payload = response.json()
    assert payload["zkill_link"] == ""
    assert payload["total_payout_str"] == "0"
    start = datetime.strptime(payload["start_date"], "%Y-%m-%d")
    end = datetime.strptime(payload["end_date"], "%Y-%m-%d")
    assert (end - start).days == 7


def test_process_computes_report(client_for):
    pipeline = StubPipeline(result=[_kill(1, 3_000_000.0, "Alice", "Bob Alt")])
    client = client_for(pipeline)

    response = client.post(
        "/process",
        json={"zkill_link": LINK, "mapping_input": "Bob Alt: Bob", **WINDOW},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["error_msg"] is None
    assert payload["total_payout_str"] == "3.00m"
    assert [(b["name"], b["formatted_amount"]) for b in payload["beneficiaries"]] == [
        ("Alice", "1.50m"),
        ("Bob", "1.50m"),
    ]
    link, cutoff = pipeline.calls[0]
    assert link == LINK
    assert cutoff == datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_failure_without_previous_result_reports_error(client_for):
    client = client_for(StubPipeline(error=RateLimited(429, source="detail")))

    payload = client.post("/process", json={"zkill_link": LINK, **WINDOW}).json()

    assert payload["error_kind"] == "rate_limited"
    assert payload["error_msg"].startswith("Failed to fetch: ESI Rate Limit Triggered")
    assert payload["daily_groups"] == []


def test_failure_falls_back_to_last_result(client_for, store):
    store.replace(LINK, [_kill(7, 500.0, "Alice")])
    client = client_for(StubPipeline(error=UpstreamListError(page=1, status=502)))

    payload = client.post("/process", json={"zkill_link": LINK, **WINDOW}).json()

    assert payload["error_msg"] is None
    assert payload["kills_count"] == 1
    assert payload["daily_groups"][0]["kills"][0]["killmail_id"] == 7


def test_window_too_large_skips_fetch(client_for):
    pipeline = StubPipeline()
    client = client_for(pipeline)

    payload = client.post(
        "/process",
        json={"zkill_link": LINK, "start_date": "2024-01-01", "end_date": "2024-03-01"},
    ).json()

    assert payload["error_kind"] == "window_too_large"
    assert pipeline.calls == []


def test_empty_link_reports_on_stored_result(client_for, store):
    store.replace(LINK, [_kill(7, 500.0, "Alice")])
    pipeline = StubPipeline()
    client = client_for(pipeline)

    payload = client.post("/process", json={"excluded_kills": "7", **WINDOW}).json()

    assert pipeline.calls == []
    assert payload["total_payout"] == 0.0
    assert payload["daily_groups"][0]["kills"][0]["is_active"] is False


def test_process_end_to_end_with_fake_upstreams(client_for, fake_upstream, test_settings, recording_sleep):
    fake_upstream.add_kill(1, 1, dropped=2_000_000.0, when="2024-05-10T12:00:00Z")
    fake_upstream.add_kill(1, 2, dropped=0.0, when="2024-05-09T12:00:00Z")
    fake_upstream.add_kill(1, 3, dropped=1_000.0, when="2024-04-20T12:00:00Z")
    fake_upstream.names = {1001: "Alice"}
    pipeline = KillPipeline(
        ResponseCache(),
        config=test_settings,
        transport=fake_upstream.transport,
        sleep=recording_sleep,
    )
    client = client_for(pipeline)

    payload = client.post("/process", json={"zkill_link": LINK, **WINDOW}).json()

    assert fake_upstream.page_requests() == [1]
    assert payload["kills_count"] == 1
    assert payload["beneficiaries"] == [
        {"name": "Alice", "amount": 2_000_000.0, "formatted_amount": "2.00m", "is_active": True}
    ]


def test_health_endpoints():
    cache = ResponseCache()
    cache.names.put(1, "Alice")
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_result_store] = lambda: ResultStore()
    try:
        client = TestClient(app)
        assert client.get("/health").json()["ok"] is True
        payload = client.get("/health/cache").json()
    finally:
        app.dependency_overrides.clear()

    assert payload["cache"] == {"details": 0, "names": 1}
    assert payload["last_result"]["kills_count"] == 0


def test_junk_in_excluded_kills_is_ignored(client_for):
    client = client_for(StubPipeline(result=[_kill(1, 3_000_000.0, "Alice")]))

    response = client.post(
        "/process",
        json={"zkill_link": LINK, "excluded_kills": "--5, ², 1x", **WINDOW},
    )

    assert response.status_code == 200
    assert response.json()["total_payout_str"] == "3.00m"


def test_lifespan_logs_registered_routes(caplog):
    caplog.set_level("INFO", logger="looter.main")

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200

    messages = [record.getMessage() for record in caplog.records]
    assert "Upstreams configured" in messages
    assert any(m.startswith("Registered route /process") for m in messages)
