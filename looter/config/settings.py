"""
Configuration de l'application (Settings)
=========================================

Rôle
----
- Centraliser les paramètres du service (nom, host/port, upstreams, pagination, timeouts…).
- Les valeurs par défaut conviennent pour un environnement de dev local.
- Les variables peuvent être surchargées via un fichier `.env` ou l'environnement.

Intégrations
------------
- `pydantic-settings` charge automatiquement les variables d'env et `.env`.
- Les services/routers importent `from looter.config.settings import settings`.

Bonnes pratiques
----------------
- `USER_AGENT` doit identifier un contact joignable (exigence zKillboard / ESI).
- `DETAIL_CONCURRENCY` borne le nombre de requêtes ESI simultanées par lot.
- `MAX_PAGES` et `PAGE_DELAY_SECONDS` règlent la pression exercée sur zKillboard.

Exemples de `.env`
------------------
APP_NAME="EVE Looter (Staging)"
PORT=3000
USER_AGENT="EveLooter/2.0 (maintainer: ops@example.com)"
DETAIL_CONCURRENCY=10
LOG_LEVEL="DEBUG"
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Nom du service (apparaît dans /health)
    APP_NAME: str = "EVE Looter"
    # Bind réseau (FastAPI / Uvicorn)
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    # Niveau du logger racine appliqué au démarrage
    LOG_LEVEL: str = "INFO"

    # Origines autorisées par le middleware CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Identité HTTP envoyée aux deux upstreams
    USER_AGENT: str = "EveLooter/2.0 (maintainer: admin@example.com)"

    # Upstream 1 : agrégateur (liste paginée des kills)
    ZKILL_BASE_URL: str = "https://zkillboard.com"
    # Upstream 2 : ESI (détail des killmails + résolution de noms)
    ESI_BASE_URL: str = "https://esi.evetech.net/v1"
    ESI_DATASOURCE: str = "tranquility"

    # Pagination : nombre max de pages et pause entre deux pages
    MAX_PAGES: int = 10
    PAGE_DELAY_SECONDS: float = 0.2

    # Hydratation : requêtes ESI simultanées par lot
    DETAIL_CONCURRENCY: int = 20
    # Résolution de noms : limite ESI par POST /universe/names/
    NAME_CHUNK_SIZE: int = 1000

    # Timeouts httpx (lecture/écriture/pool, connexion)
    HTTP_TIMEOUT_SECONDS: float = 30.0
    HTTP_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Fenêtre temporelle du rapport
    DEFAULT_WINDOW_DAYS: int = 7
    MAX_WINDOW_DAYS: int = 30

    # Paramétrage pydantic-settings :
    # - lit le fichier .env (UTF-8) si présent
    # - ignore les clés supplémentaires pour éviter les erreurs
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Instance unique importable partout : `settings`
settings = Settings()
