"""
Service: payout.py
Rôle:
- Étape "rapport" appliquée aux kills déjà hydratés : fenêtre temporelle, exclusions,
  regroupement alt → main, partage de la valeur lâchée, liste des bénéficiaires,
  regroupement par jour.
- Aucune I/O : fonctions pures appelées par la route /process.

Modes de partage (`split_mode`):
- "per_kill"   : chaque kill est divisé à parts égales entre ses participants (défaut).
- "per_window" : la somme des kills ayant au moins un participant éligible est divisée
                 à parts égales entre tous les mains éligibles vus sur la fenêtre.

Notes:
- Un participant est un attaquant NOMMÉ ; les alts sont ramenés à leur main via le mapping.
- Un main exclu reste listé (is_active=False) mais ne reçoit rien.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Literal, Optional, Set

from looter.models.killmail import Killmail
from looter.utils.isk import format_isk

SplitMode = Literal["per_kill", "per_window"]

DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


def _parse_date(value: Optional[str]) -> Optional[date]:
    try:
        return datetime.strptime((value or "").strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def window_bounds(
    start_date: Optional[str],
    end_date: Optional[str],
    *,
    today: date,
    default_days: int = 7,
) -> TimeWindow:
    """
    Construit la fenêtre [start 00:00:00, end 23:59:59] en UTC.
    Dates absentes ou invalides → start = today - default_days, end = today.
    """
    start_day = _parse_date(start_date) or (today - timedelta(days=default_days))
    end_day = _parse_date(end_date) or today
    return TimeWindow(
        start=datetime.combine(start_day, time(0, 0, 0), tzinfo=timezone.utc),
        end=datetime.combine(end_day, time(23, 59, 59), tzinfo=timezone.utc),
    )


def parse_mapping(text: Optional[str]) -> Dict[str, str]:
    """Lignes `alt:main` ou `alt=main` (premier séparateur rencontré)."""
    mapping: Dict[str, str] = {}
    for line in (text or "").splitlines():
        cut = min((i for i in (line.find(":"), line.find("=")) if i >= 0), default=-1)
        if cut < 0:
            continue
        alt, main = line[:cut].strip(), line[cut + 1:].strip()
        mapping[alt] = main
    return mapping


def parse_excluded_kills(text: Optional[str]) -> Set[int]:
    result: Set[int] = set()
    for part in (text or "").split(","):
        try:
            result.add(int(part.strip()))
        except ValueError:
            continue
    return result


def parse_excluded_names(text: Optional[str]) -> Set[str]:
    return {part.strip() for part in (text or "").split(",") if part.strip()}


def _mains_for(kill: Killmail, mapping: Dict[str, str]) -> Set[str]:
    mains: Set[str] = set()
    for attacker in kill.attackers:
        if attacker.character_name:
            mains.add(mapping.get(attacker.character_name, attacker.character_name))
    return mains


def _group_by_day(kills: Iterable[Killmail]) -> List[dict]:
    groups: Dict[str, List[Killmail]] = defaultdict(list)
    for kill in kills:
        groups[kill.killmail_time.astimezone(timezone.utc).date().isoformat()].append(kill)
    return [
        {"date_display": day, "kills": [k.model_dump(mode="json", by_alias=True) for k in groups[day]]}
        for day in sorted(groups, reverse=True)
    ]


def build_report(
    kills: Iterable[Killmail],
    window: TimeWindow,
    *,
    mapping: Optional[Dict[str, str]] = None,
    excluded_kills: Optional[Set[int]] = None,
    excluded_names: Optional[Set[str]] = None,
    split_mode: SplitMode = "per_kill",
) -> dict:
    """
    Applique la fenêtre et les exclusions puis calcule les parts.

    Returns:
        dict avec `daily_groups`, `total_payout` (+ `total_payout_str`),
        `total_humans`, `beneficiaries` (triés par nom).
    """
    mapping = mapping or {}
    excluded_kills = excluded_kills or set()
    excluded_names = excluded_names or set()

    in_window: List[Killmail] = []
    for kill in kills:
        if kill.zkb.dropped_value <= 0 or not window.contains(kill.killmail_time):
            continue
        in_window.append(kill.model_copy(update={"is_active": kill.killmail_id not in excluded_kills}))

    seen_mains: Set[str] = set()
    wallets: Dict[str, float] = defaultdict(float)
    total = 0.0
    shared_pot = 0.0
    eligible_mains: Set[str] = set()

    for kill in in_window:
        if not kill.is_active:
            continue
        value = kill.zkb.dropped_value
        total += value

        mains = _mains_for(kill, mapping)
        seen_mains.update(mains)
        participants = mains - excluded_names
        if not participants:
            continue

        if split_mode == "per_window":
            shared_pot += value
            eligible_mains.update(participants)
        else:
            share = value / len(participants)
            for main in participants:
                wallets[main] += share

    if split_mode == "per_window" and eligible_mains:
        share = shared_pot / len(eligible_mains)
        for main in eligible_mains:
            wallets[main] = share

    beneficiaries = [
        {
            "name": main,
            "amount": wallets.get(main, 0.0),
            "formatted_amount": format_isk(wallets.get(main, 0.0)),
            "is_active": main not in excluded_names,
        }
        for main in sorted(seen_mains)
    ]

    return {
        "daily_groups": _group_by_day(in_window),
        "kills_count": len(in_window),
        "total_payout": total,
        "total_payout_str": format_isk(total),
        "total_humans": sum(1 for b in beneficiaries if b["is_active"]),
        "beneficiaries": beneficiaries,
    }
