"""
Routes principales du looter.

Objectifs :
- `GET /`         : valeurs par défaut du formulaire (fenêtre de 7 jours, champs vides).
- `POST /process` : récupère les kills d'une entité zKillboard puis calcule le rapport
                    (fenêtre, exclusions, mapping alt → main, partage des gains).

Dégradation :
- Une erreur du pipeline (lien invalide, zKillboard KO, rate-limit ESI) ne renvoie
  jamais de 5xx : le dernier résultat réussi est réutilisé s'il existe, sinon
  `error_msg` est renseigné.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from looter.config.settings import settings
from looter.deps.pipeline import get_pipeline, get_result_store
from looter.models.killmail import Killmail
from looter.services.errors import PipelineError
from looter.services.payout import (
    DATE_FORMAT,
    SplitMode,
    build_report,
    parse_excluded_kills,
    parse_excluded_names,
    parse_mapping,
    window_bounds,
)
from looter.services.pipeline import KillPipeline
from looter.services.result_store import ResultStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["looter"])


# ---------------------------------------------------------------------------
# Modèles Pydantic
# ---------------------------------------------------------------------------
class ProcessPayload(BaseModel):
    zkill_link: str = Field("", description="Lien zKillboard (corporation, alliance, personnage, système, région)")
    mapping_input: str = Field("", description="Une ligne par alt: `alt:main` ou `alt=main`")
    excluded_kills: Optional[str] = Field(None, description="IDs de kills exclus, séparés par des virgules")
    excluded_beneficiaries: Optional[str] = Field(None, description="Mains exclus, séparés par des virgules")
    start_date: str = Field("", description="YYYY-MM-DD (défaut: aujourd'hui - 7 jours)")
    end_date: str = Field("", description="YYYY-MM-DD (défaut: aujourd'hui)")
    split_mode: SplitMode = Field("per_kill", description="per_kill | per_window")


class Beneficiary(BaseModel):
    name: str
    amount: float
    formatted_amount: str
    is_active: bool


class DailyGroup(BaseModel):
    date_display: str
    kills: List[Dict[str, Any]]


class ProcessResponse(BaseModel):
    zkill_link: str
    mapping_text: str
    start_date: str
    end_date: str
    split_mode: SplitMode = "per_kill"
    daily_groups: List[DailyGroup] = Field(default_factory=list)
    kills_count: int = 0
    total_payout: float = 0.0
    total_payout_str: str = "0"
    total_humans: int = 0
    beneficiaries: List[Beneficiary] = Field(default_factory=list)
    error_msg: Optional[str] = None
    error_kind: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers internes
# ---------------------------------------------------------------------------
def _today() -> date:
    return datetime.now(timezone.utc).date()


def _empty_response(payload: ProcessPayload, **extra: Any) -> ProcessResponse:
    return ProcessResponse(
        zkill_link=payload.zkill_link,
        mapping_text=payload.mapping_input,
        start_date=payload.start_date,
        end_date=payload.end_date,
        split_mode=payload.split_mode,
        **extra,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("/", response_model=ProcessResponse)
async def show_index() -> ProcessResponse:
    """Formulaire vierge : fenêtre par défaut, aucun kill."""
    today = _today()
    start = today - timedelta(days=settings.DEFAULT_WINDOW_DAYS)
    return ProcessResponse(
        zkill_link="",
        mapping_text="",
        start_date=start.strftime(DATE_FORMAT),
        end_date=today.strftime(DATE_FORMAT),
    )


@router.post("/process", response_model=ProcessResponse)
async def process_data(
    payload: ProcessPayload = Body(default_factory=ProcessPayload),
    pipeline: KillPipeline = Depends(get_pipeline),
    results: ResultStore = Depends(get_result_store),
) -> ProcessResponse:
    """
    Récupère (si un lien est fourni) puis calcule le rapport sur la fenêtre demandée.
    - Fenêtre > MAX_WINDOW_DAYS → `error_msg`, aucune récupération.
    - Échec du pipeline → repli sur le dernier résultat réussi.
    """
    logger.info("Processing request", extra={"zkill_link": payload.zkill_link})

    window = window_bounds(
        payload.start_date,
        payload.end_date,
        today=_today(),
        default_days=settings.DEFAULT_WINDOW_DAYS,
    )
    logger.debug(
        "Time window resolved",
        extra={"start": window.start.isoformat(), "end": window.end.isoformat()},
    )

    if window.days > settings.MAX_WINDOW_DAYS:
        return _empty_response(
            payload,
            error_msg=f"Timeframe exceeds {settings.MAX_WINDOW_DAYS} days. Please select a shorter range.",
            error_kind="window_too_large",
        )

    error_msg: Optional[str] = None
    error_kind: Optional[str] = None
    if payload.zkill_link.strip():
        try:
            fetched: List[Killmail] = await pipeline.fetch(payload.zkill_link, window.start)
            results.replace(payload.zkill_link, fetched)
        except PipelineError as exc:
            logger.error(
                "Error fetching data",
                extra={"error_kind": exc.kind, "error": str(exc)},
            )
            if results.is_empty():
                error_msg = f"Failed to fetch: {exc}"
                error_kind = exc.kind

    report = build_report(
        results.snapshot(),
        window,
        mapping=parse_mapping(payload.mapping_input),
        excluded_kills=parse_excluded_kills(payload.excluded_kills),
        excluded_names=parse_excluded_names(payload.excluded_beneficiaries),
        split_mode=payload.split_mode,
    )
    logger.debug("Active kills in range", extra={"kills_count": report["kills_count"]})

    return _empty_response(payload, error_msg=error_msg, error_kind=error_kind, **report)
