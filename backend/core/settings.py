"""Paramètres de l'API de fiches de naissance (pydantic-settings).

Les valeurs viennent de l'environnement puis d'un fichier .env; elles couvrent le stockage (Redis ou
mémoire), l'authentification, les fournisseurs de géocodage et de fuseau horaire et les seuils de
la résolution des lieux.
"""

import os
from pathlib import Path

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _resolve_env_file() -> Path:
    """Fichier .env retenu: ENV_FILE explicite, sinon .env.{APP_ENV} s'il existe, sinon .env."""
    explicit = os.getenv("ENV_FILE")
    if explicit:
        return Path(explicit)
    specific = Path.cwd() / f".env.{os.getenv('APP_ENV', 'dev')}"
    return specific if specific.exists() else Path.cwd() / ".env"


class Settings(BaseSettings):
    """Configuration de l'application; chaque champ est surchargeable par variable d'environnement."""

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "jyotish-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    CORS_ORIGINS: list[AnyHttpUrl] | list[str] = []
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False
    # JWT/Auth
    JWT_SECRET: str = "dev-secret-change-me-before-deploying"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MIN: int = 60

    # Fournisseurs externes
    GEOCODING_BASE_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODING_USER_AGENT: str = "JyotishApp/1.0 (Educational Purpose)"
    TIMEZONE_API_BASE_URL: str = "https://timeapi.io/api"
    # Aucun timeout n'est imposé par les fournisseurs: borne par appel
    EXTERNAL_HTTP_TIMEOUT_S: float = Field(default=5.0, gt=0.0, le=30.0)

    # Résolution des lieux
    LOCATION_SEARCH_MIN_QUERY_LEN: int = Field(default=2, ge=1)
    LOCATION_CACHE_SUFFICIENT: int = Field(default=3, ge=1)
    LOCATION_SEARCH_MAX_RESULTS: int = Field(default=10, ge=1)
    LOCATION_REMOTE_LIMIT: int = Field(default=5, ge=1)
    LOCATION_DEDUP_TOLERANCE_DEG: float = Field(default=0.01, gt=0.0)


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
