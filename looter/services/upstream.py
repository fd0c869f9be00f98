"""
Service: upstream.py
- Client HTTP asynchrone centralisé pour les deux upstreams :
  zKillboard (liste paginée) et ESI (détail killmail + résolution de noms).
- Construit les URLs, l'en-tête User-Agent et la politique de timeout.
- Ne décide rien : renvoie la `httpx.Response` brute, l'appelant interprète le status.

Cycle de vie:
- Un client par invocation du pipeline (`async with UpstreamClient(...) as upstream`).
- `transport` est injectable (httpx.MockTransport dans les tests).
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx
import orjson

from looter.config.settings import Settings, settings as default_settings
from looter.models.entity import EntityReference

logger = logging.getLogger(__name__)


class UpstreamClient:
    def __init__(
        self,
        *,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or default_settings
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _build_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(
            self.config.HTTP_TIMEOUT_SECONDS,
            connect=self.config.HTTP_CONNECT_TIMEOUT_SECONDS,
        )
        return httpx.AsyncClient(
            headers={
                "User-Agent": self.config.USER_AGENT,
                "Accept": "application/json",
            },
            timeout=timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def __aenter__(self) -> "UpstreamClient":
        self._http = self._build_client()
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("UpstreamClient used outside of its async context")
        return self._http

    # ---------- URLs ----------
    def list_url(self, ref: EntityReference, page: int) -> str:
        base = f"{self.config.ZKILL_BASE_URL}/api/{ref.query_param}/{ref.entity_id}/"
        if page == 1:
            return base
        return f"{base}page/{page}/"

    def killmail_url(self, killmail_id: int, hash_: str) -> str:
        return f"{self.config.ESI_BASE_URL}/killmails/{killmail_id}/{hash_}/"

    def names_url(self) -> str:
        return f"{self.config.ESI_BASE_URL}/universe/names/"

    # ---------- appels ----------
    async def list_page(self, ref: EntityReference, page: int) -> httpx.Response:
        url = self.list_url(ref, page)
        logger.info("Fetching zKillboard page", extra={"page": page, "url": url})
        return await self.http.get(url)

    async def killmail(self, killmail_id: int, hash_: str) -> httpx.Response:
        return await self.http.get(
            self.killmail_url(killmail_id, hash_),
            params={"datasource": self.config.ESI_DATASOURCE},
        )

    async def names(self, ids: Iterable[int]) -> httpx.Response:
        return await self.http.post(
            self.names_url(),
            params={"datasource": self.config.ESI_DATASOURCE},
            content=orjson.dumps(list(ids)),
            headers={"Content-Type": "application/json"},
        )
