"""
Service: assembler.py
- Joint les résumés zKillboard, les détails ESI en cache et les noms en cache
  pour produire les `Killmail` de sortie.
- Un kill sans détail (jamais hydraté ou raté doux) est simplement ignoré.
- Un nom manquant est rendu comme None, jamais comme une erreur.
"""
from typing import List, Sequence

from looter.models.killmail import Attacker, Killmail, KillSummary, Victim
from looter.services.cache import ResponseCache
from looter.services.name_resolver import participant_ids
from looter.utils.isk import format_isk


def assemble(summaries: Sequence[KillSummary], cache: ResponseCache) -> List[Killmail]:
    details = cache.details.get_many(s.killmail_id for s in summaries)
    wanted = {pid for detail in details.values() for pid in participant_ids(detail)}
    names = cache.names.get_many(wanted)

    kills: List[Killmail] = []
    for summary in summaries:
        if summary.zkb.dropped_value <= 0:
            continue
        detail = details.get(summary.killmail_id)
        if detail is None:
            continue

        v = detail.victim
        victim = Victim(
            character_id=v.character_id,
            character_name=names.get(v.character_id),
            corporation_id=v.corporation_id,
            corporation_name=names.get(v.corporation_id),
            ship_type_id=v.ship_type_id,
            ship_type_name=names.get(v.ship_type_id),
        )
        attackers = [
            Attacker(
                character_id=a.character_id,
                character_name=names.get(a.character_id),
                corporation_id=a.corporation_id,
                final_blow=a.final_blow,
            )
            for a in detail.attackers
        ]
        kills.append(
            Killmail(
                killmail_id=summary.killmail_id,
                killmail_time=detail.killmail_time,
                zkb=summary.zkb,
                solar_system_id=detail.solar_system_id,
                solar_system_name=names.get(detail.solar_system_id),
                victim=victim,
                attackers=attackers,
                formatted_dropped=format_isk(summary.zkb.dropped_value),
            )
        )
    return kills
