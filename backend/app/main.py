"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares, gestionnaires d'erreurs,
routes et métriques de l'API de gestion des fiches de naissance.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (contexte de requête, métriques, CORS)
- Monter les routers (santé, auth, dossiers, fiches, lieux, métriques)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routes_auth import router as auth_router
from backend.api.routes_charts import router as charts_router
from backend.api.routes_folders import router as folders_router
from backend.api.routes_health import router as health_router
from backend.api.routes_locations import router as locations_router
from backend.apigw.errors import install_error_handlers
from backend.app.metrics import PrometheusMiddleware, metrics_router
from backend.core.container import container
from backend.core.logging import setup_logging
from backend.middlewares.request_context import RequestContextMiddleware


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Ferme les clients HTTP externes à l'arrêt."""
    yield
    container.close()


def create_app() -> FastAPI:
    """Assemble l'application: logs, enveloppes d'erreur, middlewares puis routers.

    Le contexte de requête est ajouté en dernier pour envelopper les métriques: l'identifiant
    de requête est ainsi disponible dans les logs de toutes les couches.
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, lifespan=lifespan)
    install_error_handlers(app)
    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(o).rstrip("/") for o in settings.CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(folders_router)
    app.include_router(charts_router)
    app.include_router(locations_router)
    app.include_router(metrics_router)
    return app


app = create_app()
