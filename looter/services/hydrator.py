"""
Service: hydrator.py
- Hydrate un lot de résumés zKillboard avec le détail ESI (GET /killmails/{id}/{hash}/).
- Seuls les kills absents du cache `details` sont demandés.
- Toutes les requêtes du lot partent en parallèle (bornées par un sémaphore)
  et sont jointes avant toute décision.

Issues d'une requête:
- 2xx + corps valide  → fusionné dans le cache.
- 2xx + corps invalide → raté doux (journalisé).
- erreur transport     → raté doux (journalisé).
- non-2xx              → status conservé pour l'inspection rate-limit.

Après le lot : les succès sont fusionnés, PUIS un 429/420 éventuel lève `RateLimited`.
Les succès d'un lot interrompu restent donc en cache pour les appels suivants.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import httpx
import orjson
from pydantic import ValidationError

from looter.models.killmail import EsiKillmail, KillSummary
from looter.services.cache import ResponseCache
from looter.services.errors import RateLimited, is_rate_limit
from looter.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

# (killmail_id, détail, None) succès ; (killmail_id, None, status) non-2xx ;
# (killmail_id, None, None) raté doux.
_Outcome = Tuple[int, Optional[EsiKillmail], Optional[int]]


@dataclass
class HydrationReport:
    requested: int = 0
    hydrated: int = 0
    missed: int = 0
    failed_statuses: List[int] = field(default_factory=list)


async def _fetch_one(
    upstream: UpstreamClient,
    summary: KillSummary,
    semaphore: asyncio.Semaphore,
) -> _Outcome:
    killmail_id = summary.killmail_id
    async with semaphore:
        try:
            response = await upstream.killmail(killmail_id, summary.zkb.hash)
        except (httpx.HTTPError, httpx.InvalidURL):
            logger.error("ESI network error", exc_info=True, extra={"killmail_id": killmail_id})
            return killmail_id, None, None

    if not response.is_success:
        return killmail_id, None, response.status_code

    try:
        detail = EsiKillmail.model_validate(orjson.loads(response.content))
    except (orjson.JSONDecodeError, ValidationError) as exc:
        logger.error(
            "Failed to parse ESI killmail",
            extra={"killmail_id": killmail_id, "error": str(exc)},
        )
        return killmail_id, None, None
    return killmail_id, detail, None


async def hydrate(
    upstream: UpstreamClient,
    cache: ResponseCache,
    summaries: Sequence[KillSummary],
    *,
    concurrency: int,
) -> HydrationReport:
    """
    Hydrate `summaries` dans `cache.details`.
    Lève `RateLimited` si au moins une réponse du lot vaut 429/420.
    """
    by_id: Dict[int, KillSummary] = {s.killmail_id: s for s in summaries}
    pending = cache.details.missing(by_id.keys())
    report = HydrationReport(requested=len(pending))
    if not pending:
        return report

    semaphore = asyncio.Semaphore(max(1, concurrency))
    outcomes = await asyncio.gather(
        *(_fetch_one(upstream, by_id[kid], semaphore) for kid in pending)
    )

    successes: Dict[int, EsiKillmail] = {}
    for killmail_id, detail, status in outcomes:
        if detail is not None:
            successes[killmail_id] = detail
        elif status is not None:
            report.failed_statuses.append(status)
        else:
            report.missed += 1

    report.hydrated = len(successes)
    if successes:
        cache.details.put_many(successes)

    for status in report.failed_statuses:
        if is_rate_limit(status):
            logger.error(
                "ESI rate limit triggered, aborting fetch",
                extra={"status": status, "hydrated": report.hydrated},
            )
            raise RateLimited(status, source="detail")

    for status in report.failed_statuses:
        if status >= 500:
            logger.warning("ESI server error", extra={"status": status})
        else:
            logger.warning("ESI killmail request rejected", extra={"status": status})

    return report
