"""
Métriques Prometheus de l'API de fiches de naissance.

Deux familles:
- HTTP: nombre et latence des requêtes par gabarit de route (cardinalité bornée).
- Résolution de lieux: appels aux fournisseurs externes (issue ok/fallback), source des résultats
  de recherche (cache, remote, rejected) et candidats écartés faute de persistance.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter(tags=["metrics"])

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

GEOCODING_REQUESTS = Counter(
    "geocoding_requests_total",
    "Calls to external geocoding/timezone providers",
    ["provider", "outcome"],
)
GEOCODING_LATENCY = Histogram(
    "geocoding_request_duration_seconds",
    "Latency of external geocoding/timezone providers",
    ["provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)
LOCATION_SEARCH_TOTAL = Counter(
    "location_search_total",
    "Location searches by result source",
    ["source"],
)
LOCATION_PERSIST_ERRORS = Counter(
    "location_persist_errors_total",
    "Candidates skipped because persistence failed",
)


def normalize_route(request: Request) -> str:
    """Gabarit de la route servie (`/api/locations/{location_id}`), `unmatched` pour un 404."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


@metrics_router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Compte et chronomètre chaque requête; une exception non gérée est comptée en 500."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            route = normalize_route(request)
            REQUEST_COUNT.labels(request.method, route, status).inc()
            REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
