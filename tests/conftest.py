"""
Fixtures communes : faux upstreams zKillboard + ESI servis par `httpx.MockTransport`.

`FakeUpstream` enregistre chaque requête reçue et répond selon :
- `pages[n]`      : liste JSON (page absente → `[]`) ou entier = status HTTP d'erreur,
- `details[id]`   : dict JSON, entier = status, bytes = corps brut, "network" = ConnectError,
                    "invalid-url" = InvalidURL,
- `names[id]`     : nom renvoyé par /universe/names/,
- `name_statuses` : statuses imposés (FIFO) aux POST /universe/names/ successifs.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from looter.config.settings import Settings
from looter.services.cache import ResponseCache


class FakeUpstream:
    def __init__(self) -> None:
        self.pages: Dict[int, Any] = {}
        self.details: Dict[int, Any] = {}
        self.names: Dict[int, str] = {}
        self.name_statuses: List[int] = []
        self.requests: List[httpx.Request] = []
        self.delay: float = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    # ---------- construction des données ----------
    def add_kill(
        self,
        page: int,
        killmail_id: int,
        *,
        dropped: float = 1_000_000.0,
        when: str = "2024-05-10T12:00:00Z",
        attackers: Optional[List[dict]] = None,
        victim: Optional[dict] = None,
        system_id: int = 30000142,
        detail: Any = None,
    ) -> None:
        self.pages.setdefault(page, []).append(
            {
                "killmail_id": killmail_id,
                "zkb": {
                    "locationID": 40009077,
                    "hash": f"hash{killmail_id}",
                    "fittedValue": dropped * 2,
                    "droppedValue": dropped,
                    "destroyedValue": dropped,
                    "totalValue": dropped * 2,
                    "points": 1,
                    "npc": False,
                    "solo": False,
                    "awox": False,
                },
            }
        )
        if detail is not None:
            self.details[killmail_id] = detail
            return
        self.details[killmail_id] = {
            "killmail_id": killmail_id,
            "killmail_time": when,
            "solar_system_id": system_id,
            "victim": victim or {"character_id": 9001, "corporation_id": 9101, "ship_type_id": 587},
            "attackers": attackers if attackers is not None else [
                {"character_id": 1001, "corporation_id": 2001, "final_blow": True}
            ],
        }

    # ---------- inspection ----------
    def page_requests(self) -> List[int]:
        pages = []
        for request in self.requests:
            path = request.url.path
            if path.startswith("/api/"):
                parts = [p for p in path.split("/") if p]
                pages.append(int(parts[-1]) if "page" in parts else 1)
        return pages

    def detail_requests(self) -> List[int]:
        return [
            int(request.url.path.split("/")[3])
            for request in self.requests
            if "/killmails/" in request.url.path
        ]

    def name_requests(self) -> List[List[int]]:
        return [
            json.loads(request.content)
            for request in self.requests
            if request.url.path.endswith("/universe/names/")
        ]

    # ---------- transport ----------
    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self._respond(request)
        finally:
            self.in_flight -= 1

    def _respond(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api/"):
            parts = [p for p in path.split("/") if p]
            page = int(parts[-1]) if "page" in parts else 1
            body = self.pages.get(page, [])
            if isinstance(body, int):
                return httpx.Response(body, json={"error": "upstream"})
            return httpx.Response(200, json=body)

        if "/killmails/" in path:
            killmail_id = int(path.split("/")[3])
            body = self.details.get(killmail_id, 404)
            if body == "network":
                raise httpx.ConnectError("connection refused", request=request)
            if body == "invalid-url":
                raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")
            if isinstance(body, int):
                return httpx.Response(body, json={"error": "esi"})
            if isinstance(body, bytes):
                return httpx.Response(200, content=body)
            return httpx.Response(200, json=body)

        if path.endswith("/universe/names/"):
            if self.name_statuses:
                return httpx.Response(self.name_statuses.pop(0), json={"error": "esi"})
            ids = json.loads(request.content)
            return httpx.Response(
                200,
                json=[{"id": i, "name": self.names[i], "category": "character"} for i in ids if i in self.names],
            )

        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def cache() -> ResponseCache:
    return ResponseCache()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(PAGE_DELAY_SECONDS=0.0, DETAIL_CONCURRENCY=5)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
