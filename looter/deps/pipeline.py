"""
Dépendances FastAPI du pipeline
===============================

Objectif
--------
Fournir aux routes les objets à durée de vie "process" :
- `get_cache()`        : le `ResponseCache` partagé (détails ESI + noms),
- `get_pipeline()`     : le `KillPipeline` construit sur ce cache,
- `get_result_store()` : le dernier résultat réussi (repli en cas d'échec).

Les instances sont créées à la demande, une seule fois, sous verrou.
Les tests remplacent ces dépendances via `app.dependency_overrides`.
"""
from __future__ import annotations

from threading import RLock
from typing import Optional

from looter.config.settings import settings
from looter.services.cache import ResponseCache
from looter.services.pipeline import KillPipeline
from looter.services.result_store import ResultStore

_LOCK = RLock()
_CACHE: Optional[ResponseCache] = None
_PIPELINE: Optional[KillPipeline] = None
_RESULTS: Optional[ResultStore] = None


def get_cache() -> ResponseCache:
    global _CACHE
    with _LOCK:
        if _CACHE is None:
            _CACHE = ResponseCache()
        return _CACHE


def get_pipeline() -> KillPipeline:
    global _PIPELINE
    with _LOCK:
        if _PIPELINE is None:
            _PIPELINE = KillPipeline(get_cache(), config=settings)
        return _PIPELINE


def get_result_store() -> ResultStore:
    global _RESULTS
    with _LOCK:
        if _RESULTS is None:
            _RESULTS = ResultStore()
        return _RESULTS
