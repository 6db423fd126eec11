"""Sonde de disponibilité de l'API.

`/health` répond sans appeler les fournisseurs externes: il indique le stockage effectivement retenu
au démarrage (redis, memory ou memory-fallback) et les fournisseurs configurés.
"""

from fastapi import APIRouter

from backend.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    settings = container.settings
    return {
        "status": "ok",
        "storage": container.storage_backend,
        "providers": {
            "geocoding": settings.GEOCODING_BASE_URL,
            "timezone": settings.TIMEZONE_API_BASE_URL,
        },
    }
