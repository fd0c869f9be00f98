# looter/services/cache.py
"""
Service: cache.py
- Deux magasins clé/valeur indépendants, partagés par toutes les récupérations du process :
  `details` (killmail_id -> EsiKillmail) et `names` (id -> nom).
- Sémantique "écrit une fois" : `put` ne remplace jamais une clé existante,
  les magasins ne font que grandir et ne sont jamais purgés.
- Un verrou par magasin, tenu le temps d'une lecture ou d'une écriture groupée,
  jamais pendant un appel réseau.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, Generic, Iterable, List, Mapping, Optional, TypeVar

from looter.models.killmail import EsiKillmail

V = TypeVar("V")


@dataclass
class LockedStore(Generic[V]):
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    _data: Dict[int, V] = field(default_factory=dict, init=False, repr=False)

    def get(self, key: int) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def contains(self, key: int) -> bool:
        with self._lock:
            return key in self._data

    def put(self, key: int, value: V) -> bool:
        """Insère si absent. Renvoie True si la clé a été écrite."""
        with self._lock:
            if key in self._data:
                return False
            self._data[key] = value
            return True

    def put_many(self, items: Mapping[int, V]) -> int:
        """Insertion groupée sous un seul verrou ; renvoie le nombre de nouvelles clés."""
        written = 0
        with self._lock:
            for key, value in items.items():
                if key not in self._data:
                    self._data[key] = value
                    written += 1
        return written

    def missing(self, keys: Iterable[int]) -> List[int]:
        """Clés absentes du magasin (ordre d'entrée conservé, doublons retirés)."""
        seen: set[int] = set()
        result: List[int] = []
        with self._lock:
            for key in keys:
                if key in seen or key in self._data:
                    continue
                seen.add(key)
                result.append(key)
        return result

    def get_many(self, keys: Iterable[int]) -> Dict[int, V]:
        """Snapshot des valeurs présentes pour `keys`."""
        with self._lock:
            return {key: self._data[key] for key in keys if key in self._data}

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


@dataclass
class ResponseCache:
    """Cache de réponses upstream, durée de vie = process hôte."""
    details: LockedStore[EsiKillmail] = field(default_factory=LockedStore)
    names: LockedStore[str] = field(default_factory=LockedStore)

    def stats(self) -> dict:
        return {"details": len(self.details), "names": len(self.names)}
