from __future__ import annotations

import datetime as dt

import structlog

from clocwise.core.settings import Settings, get_settings
from clocwise.domain.auth import JwtTokenIssuer, PasslibPasswordHasher
from clocwise.domain.services import AuthService, ClientService, TimeEntryService
from clocwise.domain.stats import StatsAggregator
from clocwise.infra.repo.db import get_engine
from clocwise.infra.repo.memory_store import InMemoryLedgerStore
from clocwise.infra.repo.sql_store import SqlLedgerStore
from clocwise.infra.repositories import (
    ClientRepository,
    ProjectRepository,
    StoreRouter,
    TimeEntryRepository,
    UserRepository,
)

log = structlog.get_logger(__name__)


class Container:
    def __init__(self, settings: Settings | None = None, primary=None, fallback=None):
        self.settings = settings or get_settings()
        s = self.settings
        # Le store de secours vit aussi longtemps que le processus
        self.fallback_store = fallback or InMemoryLedgerStore(id_start=s.FALLBACK_ID_START)
        if primary is not None:
            self.primary_store = primary
        elif s.DATABASE_URL:
            engine = get_engine(
                s.DATABASE_URL,
                connect_timeout_s=s.DB_CONNECT_TIMEOUT_S,
                pool_timeout_s=s.DB_POOL_TIMEOUT_S,
                statement_timeout_ms=s.DB_STATEMENT_TIMEOUT_MS,
            )
            self.primary_store = SqlLedgerStore(engine)
        else:
            self.primary_store = None
            log.warning("primary_store_not_configured", storage="memory")

        self.router = StoreRouter(
            self.primary_store, self.fallback_store, retry_after_s=s.STORE_RETRY_AFTER_S
        )
        self.user_repo = UserRepository(self.router)
        self.client_repo = ClientRepository(self.router)
        self.project_repo = ProjectRepository(self.router)
        self.time_entry_repo = TimeEntryRepository(self.router)

        self.auth_service = AuthService(
            self.user_repo,
            hasher=PasslibPasswordHasher(),
            tokens=JwtTokenIssuer(s.JWT_SECRET, s.JWT_ALG),
            token_ttl=dt.timedelta(days=s.JWT_EXPIRES_DAYS),
            password_min_length=s.PASSWORD_MIN_LENGTH,
        )
        self.client_service = ClientService(self.client_repo)
        self.time_entry_service = TimeEntryService(
            self.time_entry_repo,
            self.project_repo,
            default_page_size=s.DEFAULT_PAGE_SIZE,
            max_page_size=s.MAX_PAGE_SIZE,
        )
        self.stats = StatsAggregator(self.time_entry_repo, week_start=s.WEEK_START)

    def probe_storage(self) -> str:
        """Sonde le primaire et retourne le backend actif: `primary`, `fallback` ou `memory`."""
        return self.router.probe()


container = Container()
"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, stores primaire/secours, dépôts, services)
et expose un singleton `container` utilisé par le reste de l'application.
"""
