"""
Result store
============

Conserve en mémoire le dernier jeu de kills récupéré avec succès.
Sert de repli à /process quand une récupération échoue (rate-limit, zKillboard
indisponible…) : l'utilisateur continue de voir le dernier résultat connu.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import List, Optional

from looter.models.killmail import Killmail


@dataclass
class ResultStore:
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    _kills: List[Killmail] = field(default_factory=list, init=False)
    _link: Optional[str] = field(default=None, init=False)
    _updated_at: Optional[datetime] = field(default=None, init=False)

    def replace(self, link: str, kills: List[Killmail]) -> None:
        """Remplace le résultat courant (après une récupération réussie)."""
        with self._lock:
            self._kills = list(kills)
            self._link = link
            self._updated_at = datetime.now(timezone.utc)

    def snapshot(self) -> List[Killmail]:
        with self._lock:
            return list(self._kills)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._kills

    def info(self) -> dict:
        with self._lock:
            return {
                "link": self._link,
                "kills_count": len(self._kills),
                "updated_at": self._updated_at.isoformat() if self._updated_at else None,
            }
