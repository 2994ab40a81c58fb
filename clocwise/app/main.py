"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares, routes, métriques et
gestion des erreurs du registre de temps.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (contexte de requête, métriques)
- Monter les routers (auth, clients, saisies, stats, santé) sous `API_PREFIX`
"""

from __future__ import annotations

from fastapi import FastAPI

from clocwise.api.errors import register_error_handlers
from clocwise.api.routes_auth import router as auth_router
from clocwise.api.routes_clients import router as clients_router
from clocwise.api.routes_health import router as health_router
from clocwise.api.routes_stats import router as stats_router
from clocwise.api.routes_time_entries import router as time_entries_router
from clocwise.app.metrics import PrometheusMiddleware, metrics_router
from clocwise.core.container import container
from clocwise.core.logging import setup_logging
from clocwise.middlewares.request_context import RequestContextMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes métier et de santé
    """
    settings = container.settings
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    prefix = settings.API_PREFIX
    app.include_router(health_router, prefix=prefix)
    app.include_router(auth_router, prefix=prefix)
    app.include_router(clients_router, prefix=prefix)
    app.include_router(time_entries_router, prefix=prefix)
    app.include_router(stats_router, prefix=prefix)
    app.include_router(metrics_router)
    return app


app = create_app()
