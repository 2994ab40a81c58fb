"""
Dépôts du registre de temps avec bascule primaire -> secours.

Ce module fournit le routeur de stores (`StoreRouter`) et les dépôts par famille d'entités
(utilisateurs, clients, projets, saisies). Chaque opération est tentée sur le store primaire; si
celui-ci est injoignable (`BackendUnavailable`), la même opération logique est rejouée sur le store
de secours et le résultat a la même forme. Les erreurs métier (doublon, introuvable, validation)
ne déclenchent jamais de bascule.
"""

from __future__ import annotations

import datetime as dt
import threading
import time
from collections.abc import Callable
from typing import TypeVar

import structlog

from clocwise.app.metrics import STORE_FALLBACK_TOTAL, STORE_OP_LATENCY
from clocwise.domain.entities import (
    Client,
    ClientDraft,
    Plan,
    Project,
    ProjectDraft,
    TimeEntry,
    TimeEntryDraft,
    TimeEntryQuery,
    TimeEntryView,
    User,
    WindowTotals,
)
from clocwise.domain.errors import BackendUnavailable
from clocwise.infra.repo.base import LedgerStore

T = TypeVar("T")

log = structlog.get_logger(__name__)


class StoreRouter:
    """Choisit le store pour chaque appel.

    Après une panne du primaire, celui-ci est marqué indisponible pendant `retry_after_s`
    secondes: les appels vont directement au secours. Ensuite le primaire est sondé (`ping`)
    avant de lui confier à nouveau une opération.
    Sans primaire configuré, tout passe par le secours.
    """

    def __init__(
        self,
        primary: LedgerStore | None,
        fallback: LedgerStore,
        retry_after_s: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise le routeur avec ses deux stores."""
        self.primary = primary
        self.fallback = fallback
        self.retry_after_s = retry_after_s
        self._clock = clock
        self._lock = threading.Lock()
        self._down_until = 0.0
        self._degraded = False

    @property
    def active_backend(self) -> str:
        """`primary`, `fallback` (primaire marqué indisponible) ou `memory` (pas de primaire)."""
        if self.primary is None:
            return "memory"
        with self._lock:
            return "fallback" if self._degraded else "primary"

    def _primary_skipped(self) -> bool:
        with self._lock:
            return self._clock() < self._down_until

    def _mark_down(self, op: str, err: BackendUnavailable) -> None:
        with self._lock:
            self._down_until = self._clock() + self.retry_after_s
            self._degraded = True
        log.warning(
            "primary_store_unavailable",
            operation=op,
            error=str(err),
            cause=type(err.__cause__).__name__ if err.__cause__ else None,
            retry_after_s=self.retry_after_s,
        )

    def _mark_up(self) -> None:
        with self._lock:
            recovered = self._degraded
            self._degraded = False
            self._down_until = 0.0
        if recovered:
            log.info("primary_store_recovered")

    def _ping(self, op: str) -> bool:
        """Sonde le primaire; met à jour son état et retourne sa disponibilité."""
        try:
            self._timed(op, self.primary, lambda s: s.ping())
        except BackendUnavailable as err:
            self._mark_down(op, err)
            return False
        self._mark_up()
        return True

    def _primary_usable(self) -> bool:
        if self.primary is None or self._primary_skipped():
            return False
        with self._lock:
            degraded = self._degraded
        # Fenêtre expirée: on sonde avant de confier une opération au primaire
        return self._ping("ping") if degraded else True

    def probe(self) -> str:
        """Sonde le primaire (hors fenêtre d'indisponibilité) et retourne le backend actif."""
        if self.primary is None:
            return "memory"
        if self._primary_skipped() or not self._ping("ping"):
            return "fallback"
        return "primary"

    def _timed(self, op: str, store: LedgerStore, call: Callable[[LedgerStore], T]) -> T:
        start = time.perf_counter()
        try:
            return call(store)
        finally:
            STORE_OP_LATENCY.labels(op=op, backend=store.name).observe(
                time.perf_counter() - start
            )

    def execute(self, op: str, call: Callable[[LedgerStore], T]) -> T:
        """Exécute `call` sur le primaire, ou sur le secours si le primaire est injoignable."""
        if self.primary is not None:
            if self._primary_usable():
                try:
                    result = self._timed(op, self.primary, call)
                except BackendUnavailable as err:
                    self._mark_down(op, err)
                else:
                    self._mark_up()
                    return result
            STORE_FALLBACK_TOTAL.labels(operation=op).inc()
        return self._timed(op, self.fallback, call)


class UserRepository:
    """Dépôt des utilisateurs."""

    def __init__(self, router: StoreRouter) -> None:
        self._router = router

    def create_user(
        self, full_name: str, email: str, password_hash: str, plan: Plan = Plan.STARTER
    ) -> User:
        return self._router.execute(
            "create_user", lambda s: s.create_user(full_name, email, password_hash, plan)
        )

    def find_user_by_email(self, email: str) -> User | None:
        return self._router.execute("find_user_by_email", lambda s: s.find_user_by_email(email))


class ClientRepository:
    """Dépôt des clients (création transactionnelle avec projet, suppression en cascade)."""

    def __init__(self, router: StoreRouter) -> None:
        self._router = router

    def create_client_with_project(
        self, owner_id: int, client: ClientDraft, project: ProjectDraft
    ) -> Client:
        return self._router.execute(
            "create_client_with_project",
            lambda s: s.create_client_with_project(owner_id, client, project),
        )

    def list_clients_with_projects(self, owner_id: int) -> list[Client]:
        return self._router.execute(
            "list_clients_with_projects", lambda s: s.list_clients_with_projects(owner_id)
        )

    def delete_client_cascade(self, owner_id: int, client_id: int) -> None:
        self._router.execute(
            "delete_client_cascade", lambda s: s.delete_client_cascade(owner_id, client_id)
        )


class ProjectRepository:
    """Dépôt des projets (lecture scopée par propriétaire)."""

    def __init__(self, router: StoreRouter) -> None:
        self._router = router

    def find_project_owned_by(self, owner_id: int, project_id: int) -> Project | None:
        return self._router.execute(
            "find_project_owned_by", lambda s: s.find_project_owned_by(owner_id, project_id)
        )


class TimeEntryRepository:
    """Dépôt des saisies de temps, y compris les totaux par fenêtre de dates."""

    def __init__(self, router: StoreRouter) -> None:
        self._router = router

    def create_time_entry(self, owner_id: int, entry: TimeEntryDraft) -> TimeEntry:
        return self._router.execute(
            "create_time_entry", lambda s: s.create_time_entry(owner_id, entry)
        )

    def list_time_entries(self, owner_id: int, query: TimeEntryQuery) -> list[TimeEntryView]:
        return self._router.execute(
            "list_time_entries", lambda s: s.list_time_entries(owner_id, query)
        )

    def delete_time_entry(self, owner_id: int, entry_id: int) -> None:
        self._router.execute(
            "delete_time_entry", lambda s: s.delete_time_entry(owner_id, entry_id)
        )

    def window_totals(self, owner_id: int, start: dt.date, end: dt.date) -> WindowTotals:
        return self._router.execute(
            "window_totals", lambda s: s.window_totals(owner_id, start, end)
        )
