"""
Application FastAPI — Point d'entrée
====================================

Rôle
----
- Instancie l'app FastAPI, configure le CORS pour le front,
- Monte les routeurs (looter + santé),
- Configure le logging et liste les routes au démarrage.

Notes
-----
- Les importations des routeurs sont explicites pour éviter les surprises d'auto-discovery.
- Garder `settings.ALLOWED_ORIGINS` en phase avec les URLs du front.
- ⚠️ Le middleware CORS doit être ajouté AVANT les include_router.
- Lancement local : `python -m looter.main` (uvicorn, HOST/PORT depuis settings).
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from looter.routes.health import router as health_router
from looter.routes.looter import router as looter_router

from looter.config.settings import settings

logger = logging.getLogger(__name__)


# --- Cycle de vie ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Au démarrage:
    - applique `LOG_LEVEL` au logger racine,
    - journalise les upstreams configurés et la liste des routes (diagnostic).
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "Upstreams configured",
        extra={"zkill": settings.ZKILL_BASE_URL, "esi": settings.ESI_BASE_URL},
    )
    for route in app.routes:
        methods = getattr(route, "methods", None)
        logger.info("Registered route %s %s", getattr(route, "path", "?"), sorted(methods or []))
    yield


# --- App FastAPI principale  ---
app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ===========================
# CORS
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===========================
# Montage des routers
# ===========================
app.include_router(looter_router)
app.include_router(health_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
