"""
Service: pipeline.py
- Point d'entrée du cœur "fetch-and-hydrate" : `KillPipeline.fetch(link, cutoff)`.
- Enchaîne : parsing du lien → pagination (+ hydratation par page) → filtre de valeur
  → résolution des noms → assemblage.
- Le `ResponseCache` est injecté : une même instance est partagée par toutes les
  invocations concurrentes du process.

Erreurs:
- Toute `PipelineError` (lien invalide, liste en échec, rate-limit) remonte telle quelle ;
  aucun résultat partiel n'est renvoyé.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from looter.config.settings import Settings, settings as default_settings
from looter.models.killmail import Killmail
from looter.services.assembler import assemble
from looter.services.cache import ResponseCache
from looter.services.link_parser import parse_link
from looter.services.name_resolver import collect_unresolved_ids, resolve_names
from looter.services.paginator import Sleep, paginate, positive_value
from looter.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)


class KillPipeline:
    def __init__(
        self,
        cache: ResponseCache,
        *,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.cache = cache
        self.config = config or default_settings
        self._transport = transport
        self._sleep = sleep

    def _client(self) -> UpstreamClient:
        return UpstreamClient(config=self.config, transport=self._transport)

    async def fetch(self, user_link: str, cutoff: datetime) -> List[Killmail]:
        """
        Récupère, hydrate et assemble les kills de l'entité désignée par `user_link`.
        - `cutoff` : instant le plus ancien d'intérêt (naïf = UTC).
        """
        ref = parse_link(user_link)
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=timezone.utc)

        logger.info(
            "Pipeline fetch start",
            extra={"entity_kind": ref.kind.value, "entity_id": ref.entity_id, "cutoff": cutoff.isoformat()},
        )

        async with self._client() as upstream:
            summaries = await paginate(
                upstream,
                self.cache,
                ref,
                cutoff,
                max_pages=self.config.MAX_PAGES,
                page_delay=self.config.PAGE_DELAY_SECONDS,
                concurrency=self.config.DETAIL_CONCURRENCY,
                sleep=self._sleep,
            )
            worthwhile = positive_value(summaries)

            unresolved = collect_unresolved_ids(self.cache, (s.killmail_id for s in worthwhile))
            await resolve_names(
                upstream,
                self.cache,
                unresolved,
                chunk_size=self.config.NAME_CHUNK_SIZE,
            )

        kills = assemble(worthwhile, self.cache)
        logger.info(
            "Pipeline fetch done",
            extra={"kills_count": len(kills), "summaries_count": len(summaries)},
        )
        return kills
