"""
Service: paginator.py
- Pilote la récupération des pages zKillboard pour une entité.
- Chaque page est hydratée AVANT de décider de continuer : la règle d'arrêt
  a besoin des dates ESI de la page courante.

Règle d'arrêt (liste zKillboard supposée anti-chronologique):
- page vide (2xx + [])                      → fin propre.
- au moins un kill hydraté dans la page ET
  plus ancien de la page < cutoff           → arrêt après cette page.
- MAX_PAGES atteint                         → arrêt.

Le cutoff n'est qu'une heuristique d'arrêt : toutes les entrées des pages
récupérées sont conservées (la fenêtre est appliquée plus tard par le rapport).
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

import httpx
import orjson
from pydantic import TypeAdapter, ValidationError

from looter.models.entity import EntityReference
from looter.models.killmail import KillSummary
from looter.services.cache import ResponseCache
from looter.services.errors import UpstreamListError
from looter.services.hydrator import hydrate
from looter.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

_SUMMARIES = TypeAdapter(List[KillSummary])

Sleep = Callable[[float], Awaitable[None]]


async def fetch_page(upstream: UpstreamClient, ref: EntityReference, page: int) -> List[KillSummary]:
    """Récupère et valide une page ; toute anomalie lève `UpstreamListError`."""
    try:
        response = await upstream.list_page(ref, page)
    except httpx.HTTPError as exc:
        raise UpstreamListError(page, reason=str(exc) or exc.__class__.__name__) from exc

    if not response.is_success:
        raise UpstreamListError(page, status=response.status_code)

    try:
        return _SUMMARIES.validate_python(orjson.loads(response.content))
    except (orjson.JSONDecodeError, ValidationError) as exc:
        raise UpstreamListError(
            page, status=response.status_code, reason="invalid JSON payload"
        ) from exc


def oldest_hydrated(cache: ResponseCache, summaries: Sequence[KillSummary]) -> Optional[datetime]:
    """Date la plus ancienne parmi les kills de la page présents en cache (None si aucun)."""
    details = cache.details.get_many(s.killmail_id for s in summaries)
    if not details:
        return None
    return min(detail.killmail_time for detail in details.values())


async def paginate(
    upstream: UpstreamClient,
    cache: ResponseCache,
    ref: EntityReference,
    cutoff: datetime,
    *,
    max_pages: int,
    page_delay: float,
    concurrency: int,
    sleep: Sleep = asyncio.sleep,
) -> List[KillSummary]:
    collected: Dict[int, KillSummary] = {}

    for page in range(1, max_pages + 1):
        items = await fetch_page(upstream, ref, page)
        if not items:
            logger.info("Empty zKillboard page, stopping fetch", extra={"page": page})
            break

        report = await hydrate(upstream, cache, items, concurrency=concurrency)
        if report.requested:
            logger.info(
                "Page hydrated from ESI",
                extra={"page": page, "requested": report.requested, "hydrated": report.hydrated},
            )

        for item in items:
            collected.setdefault(item.killmail_id, item)

        oldest = oldest_hydrated(cache, items)
        if oldest is not None and oldest < cutoff:
            logger.info(
                "Reached kills older than cutoff, stopping fetch",
                extra={"page": page, "oldest": oldest.isoformat(), "cutoff": cutoff.isoformat()},
            )
            break

        if page < max_pages:
            await sleep(page_delay)

    logger.info("Total kills fetched from zKillboard", extra={"kills_count": len(collected)})
    return list(collected.values())


def positive_value(summaries: Sequence[KillSummary]) -> List[KillSummary]:
    """Ne garde que les kills avec une valeur lâchée strictement positive."""
    return [s for s in summaries if s.zkb.dropped_value > 0]
