"""
Service: link_parser.py
- Extrait (type d'entité, identifiant) d'un lien zKillboard saisi par l'utilisateur.
- Pur et synchrone : aucune I/O.
"""
import re

from looter.models.entity import EntityKind, EntityReference
from looter.services.errors import InvalidLinkFormat, UnsupportedEntityKind

ZKILL_URL_PATTERN = re.compile(r"zkillboard\.com/(?P<kind>\w+)/(?P<id>\d+)")


def parse_link(text: str) -> EntityReference:
    """
    Cherche `zkillboard.com/<type>/<chiffres>` n'importe où dans la chaîne.
    - InvalidLinkFormat si le motif est absent.
    - UnsupportedEntityKind si le type n'est pas dans l'énumération connue.
    """
    match = ZKILL_URL_PATTERN.search(text or "")
    if match is None:
        raise InvalidLinkFormat(text)

    word = match.group("kind")
    try:
        kind = EntityKind(word)
    except ValueError:
        raise UnsupportedEntityKind(word) from None

    return EntityReference(kind=kind, entity_id=int(match.group("id")))
