"""
Service: errors.py
- Hiérarchie fermée des erreurs "dures" du pipeline (celles qui interrompent une récupération).
- Chaque erreur porte un `kind` stable et des champs structurés (page, status, source)
  pour que l'appelant puisse brancher sans parser de message.

Les ratés "doux" (corps ESI invalide, erreur réseau isolée, 5xx hors rate-limit)
ne sont jamais levés : ils sont journalisés par le service concerné.
"""
from typing import Optional

# Codes HTTP signalant un rate-limit (429 standard, 420 "error limited" côté ESI)
RATE_LIMIT_STATUSES = frozenset({420, 429})


class PipelineError(RuntimeError):
    """Base commune : échec d'une récupération complète."""
    kind = "pipeline_error"


class InvalidLinkFormat(PipelineError):
    kind = "invalid_link_format"

    def __init__(self, link: str):
        super().__init__("Invalid ZKillboard Link format")
        self.link = link


class UnsupportedEntityKind(PipelineError):
    kind = "unsupported_entity_kind"

    def __init__(self, entity_kind: str):
        super().__init__(f"Unsupported entity type: {entity_kind}")
        self.entity_kind = entity_kind


class UpstreamListError(PipelineError):
    """Échec de l'endpoint de liste zKillboard (status None = échec transport)."""
    kind = "upstream_list_error"

    def __init__(self, page: int, status: Optional[int] = None, reason: Optional[str] = None):
        detail = f"status {status}" if status is not None else (reason or "unreachable")
        if status is not None and reason:
            detail = f"{detail} ({reason})"
        super().__init__(f"ZKillboard Error on page {page}: {detail}")
        self.page = page
        self.status = status
        self.reason = reason


class RateLimited(PipelineError):
    """ESI a répondu 429/420 ; `source` vaut "detail" ou "names"."""
    kind = "rate_limited"

    def __init__(self, status: int, source: str):
        super().__init__(f"ESI Rate Limit Triggered (Status {status}). Try again later.")
        self.status = status
        self.source = source


def is_rate_limit(status: int) -> bool:
    return status in RATE_LIMIT_STATUSES
