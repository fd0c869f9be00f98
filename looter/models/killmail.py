"""
Models / killmail.py
Rôle:
- Modèles "fil" des deux upstreams (zKillboard liste, ESI détail/noms).
- Modèles de sortie assemblés (killmail + noms résolus) renvoyés par l'API.

Notes:
- Les champs zKillboard sont en camelCase sur le fil → alias pydantic.
- `EsiKillmail` est validé en entier : un corps partiel/invalide n'entre jamais en cache.
- `killmail_time` est parsé en datetime "aware" (format RFC 3339 côté ESI).
- Tous les modèles d'entrée sont figés (lecture seule après création).
"""
from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field


class ZkbStats(BaseModel):
    """Métadonnées de valeur fournies par zKillboard (bloc `zkb`)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location_id: Optional[int] = Field(default=None, alias="locationID")
    hash: str  # jeton obligatoire pour interroger ESI
    fitted_value: float = Field(default=0.0, alias="fittedValue")
    dropped_value: float = Field(default=0.0, alias="droppedValue")
    destroyed_value: float = Field(default=0.0, alias="destroyedValue")
    total_value: float = Field(default=0.0, alias="totalValue")
    points: int = 0
    npc: bool = False
    solo: bool = False
    awox: bool = False


class KillSummary(BaseModel):
    """Entrée de la liste paginée zKillboard."""
    model_config = ConfigDict(frozen=True)

    killmail_id: int
    zkb: ZkbStats


class EsiVictim(BaseModel):
    model_config = ConfigDict(frozen=True)

    character_id: Optional[int] = None
    corporation_id: Optional[int] = None
    alliance_id: Optional[int] = None
    ship_type_id: Optional[int] = None
    damage_taken: int = 0


class EsiAttacker(BaseModel):
    model_config = ConfigDict(frozen=True)

    character_id: Optional[int] = None
    corporation_id: Optional[int] = None
    alliance_id: Optional[int] = None
    ship_type_id: Optional[int] = None
    weapon_type_id: Optional[int] = None
    damage_done: int = 0
    final_blow: bool = False


class EsiKillmail(BaseModel):
    """Détail autoritaire d'un kill (GET /killmails/{id}/{hash}/)."""
    model_config = ConfigDict(frozen=True)

    killmail_id: int
    killmail_time: AwareDatetime  # sans décalage horaire → rejeté (raté doux)
    solar_system_id: Optional[int] = None
    victim: EsiVictim = Field(default_factory=EsiVictim)
    attackers: List[EsiAttacker] = Field(default_factory=list)


class NameEntry(BaseModel):
    """Élément de réponse de POST /universe/names/."""
    id: int
    name: str
    category: str = ""


# ---------------------------------------------------------------------------
# Sortie
# ---------------------------------------------------------------------------

class Victim(BaseModel):
    character_id: Optional[int] = None
    character_name: Optional[str] = None
    corporation_id: Optional[int] = None
    corporation_name: Optional[str] = None
    ship_type_id: Optional[int] = None
    ship_type_name: Optional[str] = None


class Attacker(BaseModel):
    character_id: Optional[int] = None
    character_name: Optional[str] = None
    corporation_id: Optional[int] = None
    final_blow: bool = False


class Killmail(BaseModel):
    """Kill hydraté + noms résolus, tel que consommé par le rapport."""
    killmail_id: int
    killmail_time: datetime
    zkb: ZkbStats
    solar_system_id: Optional[int] = None
    solar_system_name: Optional[str] = None
    victim: Victim
    attackers: List[Attacker] = Field(default_factory=list)
    formatted_dropped: str = "0"
    is_active: bool = True  # False si exclu par l'utilisateur
