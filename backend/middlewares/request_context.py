"""Contexte de requête: identifiant de corrélation et durée de traitement.

L'identifiant (X-Request-ID reçu, sinon généré) est:
- lié aux contextvars structlog, donc présent dans les logs du résolveur de lieux et des clients
  de géocodage pendant la requête;
- exposé dans `request.state.request_id`, repris comme `trace_id` des enveloppes d'erreur;
- renvoyé dans la réponse avec la durée en millisecondes (X-Process-Time-ms).
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time-ms"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.0f}"
        return response
