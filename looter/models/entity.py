"""
Models / entity.py
Rôle:
- Référence d'entité extraite d'un lien zKillboard (type + identifiant numérique).

Notes:
- `EntityKind` porte le mot présent dans l'URL utilisateur ("system", pas "solarSystem").
- `query_param` donne le nom de paramètre attendu par l'API zKillboard.
- Modèle figé (`frozen=True`) : dérivé une fois depuis l'entrée, jamais modifié.
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict


class EntityKind(str, Enum):
    CORPORATION = "corporation"
    ALLIANCE = "alliance"
    CHARACTER = "character"
    SYSTEM = "system"
    REGION = "region"


# Mot d'URL -> nom du paramètre de l'API zKillboard
QUERY_PARAMS = {
    EntityKind.CORPORATION: "corporationID",
    EntityKind.ALLIANCE: "allianceID",
    EntityKind.CHARACTER: "characterID",
    EntityKind.SYSTEM: "solarSystemID",
    EntityKind.REGION: "regionID",
}


class EntityReference(BaseModel):
    """Cible d'une récupération : corporation, alliance, personnage, système ou région."""
    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    entity_id: int

    @property
    def query_param(self) -> str:
        return QUERY_PARAMS[self.kind]
