"""Middleware Starlette pour le contexte de requête.

Ce module implémente un middleware qui:
- propage (ou génère) l'identifiant de requête `X-Request-ID`, exposé dans `request.state.trace_id`
  et lié aux logs structlog de la requête;
- ajoute l'en-tête `X-Process-Time-ms` avec la durée de traitement en millisecondes.
"""

import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware d'identifiant de requête et de mesure de durée."""

    def __init__(
        self,
        app: ASGIApp,
        id_header: str = "X-Request-ID",
        timing_header: str = "X-Process-Time-ms",
    ) -> None:
        """Initialise le middleware avec les noms d'en-têtes spécifiés.

        Args:
            app: Application ASGI à wrapper.
            id_header: Nom de l'en-tête HTTP pour l'ID de requête.
            timing_header: Nom de l'en-tête HTTP pour le temps de traitement.
        """
        super().__init__(app)
        self.id_header = id_header
        self.timing_header = timing_header

    async def dispatch(self, request, call_next: Callable):
        """Traite une requête en liant son identifiant aux logs et en mesurant sa durée.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec en-têtes d'identifiant et de durée.
        """
        request_id = request.headers.get(self.id_header) or str(uuid4())
        request.state.trace_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers[self.id_header] = request_id
        response.headers[self.timing_header] = str(duration_ms)
        return response
