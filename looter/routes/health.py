"""
Module routes/health.py
Rôle:
- Endpoints de santé (service OK + état des caches en mémoire).

Intégrations:
- settings: nom d'app.
- get_cache / get_result_store: tailles du cache ESI et du dernier résultat.
"""
from fastapi import APIRouter, Depends

from looter.config.settings import settings
from looter.deps.pipeline import get_cache, get_result_store
from looter.services.cache import ResponseCache
from looter.services.result_store import ResultStore

router = APIRouter(prefix="/health", tags=["health"])

@router.get("")
async def health():
    """Renvoie un OK minimal avec le nom de service configuré."""
    return {"ok": True, "service": settings.APP_NAME}

@router.get("/cache")
async def health_cache(
    cache: ResponseCache = Depends(get_cache),
    results: ResultStore = Depends(get_result_store),
):
    """
    Expose la taille des caches (détails ESI, noms) et le dernier résultat servi.
    Les caches ne font que grandir pendant la vie du process.
    """
    return {"ok": True, "cache": cache.stats(), "last_result": results.info()}
