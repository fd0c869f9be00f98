"""
Service: name_resolver.py
- Résout les identifiants numériques (personnages, corporations, types de vaisseau,
  systèmes solaires) en noms via POST /universe/names/ (ESI).
- Les lots (≤ NAME_CHUNK_SIZE) sont envoyés séquentiellement : la sécurité
  vis-à-vis du rate-limit prime sur la latence.

Comportement par lot:
- succès      → fusion (id, nom) dans `cache.names`.
- 429/420     → `RateLimited`, aucun lot suivant n'est tenté.
- autre échec → journalisé, on passe au lot suivant (noms laissés absents).
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Sequence

import httpx
import orjson
from pydantic import TypeAdapter, ValidationError

from looter.models.killmail import EsiKillmail, NameEntry
from looter.services.cache import ResponseCache
from looter.services.errors import RateLimited, is_rate_limit
from looter.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

_NAME_ENTRIES = TypeAdapter(List[NameEntry])


def participant_ids(detail: EsiKillmail) -> Iterator[int]:
    """IDs à afficher pour un kill : victime (perso, corpo, vaisseau), système, attaquants."""
    victim = detail.victim
    for value in (
        victim.character_id,
        victim.corporation_id,
        victim.ship_type_id,
        detail.solar_system_id,
    ):
        if value is not None:
            yield value
    for attacker in detail.attackers:
        if attacker.character_id is not None:
            yield attacker.character_id


def collect_unresolved_ids(cache: ResponseCache, killmail_ids: Iterable[int]) -> List[int]:
    """IDs référencés par les détails en cache de `killmail_ids`, moins ceux déjà nommés."""
    details = cache.details.get_many(killmail_ids)
    wanted: List[int] = []
    for detail in details.values():
        wanted.extend(participant_ids(detail))
    return cache.names.missing(wanted)


def chunked(ids: Sequence[int], size: int) -> Iterator[Sequence[int]]:
    step = max(1, size)
    for start in range(0, len(ids), step):
        yield ids[start:start + step]


async def resolve_names(
    upstream: UpstreamClient,
    cache: ResponseCache,
    ids: Sequence[int],
    *,
    chunk_size: int,
) -> int:
    """Peuple `cache.names` ; renvoie le nombre de noms ajoutés."""
    if not ids:
        return 0

    logger.info("Resolving names via ESI", extra={"ids_count": len(ids)})
    added = 0
    for chunk in chunked(ids, chunk_size):
        try:
            response = await upstream.names(chunk)
        except httpx.HTTPError:
            logger.error(
                "Failed to contact ESI name resolution endpoint",
                exc_info=True,
                extra={"chunk_size": len(chunk)},
            )
            continue

        if not response.is_success:
            if is_rate_limit(response.status_code):
                logger.error(
                    "ESI rate limit triggered during name resolution",
                    extra={"status": response.status_code},
                )
                raise RateLimited(response.status_code, source="names")
            logger.warning("ESI name resolution failed", extra={"status": response.status_code})
            continue

        try:
            entries = _NAME_ENTRIES.validate_python(orjson.loads(response.content))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            logger.warning("Invalid ESI name resolution payload", extra={"error": str(exc)})
            continue

        added += cache.names.put_many({entry.id: entry.name for entry in entries})

    return added
