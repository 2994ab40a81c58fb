"""Interface commune des stores du registre de temps.

Le store primaire (SQL) et le store de secours (mémoire) implémentent ce protocole. Toutes les
opérations sur clients, projets et saisies sont scopées par l'utilisateur propriétaire: un
enregistrement existant mais appartenant à un autre utilisateur est traité comme absent.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

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

SECONDS_PER_HOUR = 3600


class LedgerStore(Protocol):
    """Protocole des stores (primaire et secours)."""

    name: str

    def ping(self) -> None:
        """Vérifie la disponibilité du store.

        Raises:
            BackendUnavailable: si le store est injoignable.
        """

    def create_user(
        self, full_name: str, email: str, password_hash: str, plan: Plan
    ) -> User:
        """Crée un utilisateur.

        Raises:
            ConflictFailure: si l'email existe déjà.
        """

    def find_user_by_email(self, email: str) -> User | None:
        """Recherche un utilisateur par email (déjà normalisé en minuscules)."""

    def create_client_with_project(
        self, owner_id: int, client: ClientDraft, project: ProjectDraft
    ) -> Client:
        """Crée atomiquement un client et son projet initial."""

    def list_clients_with_projects(self, owner_id: int) -> list[Client]:
        """Liste les clients (plus récents d'abord) avec leurs projets."""

    def delete_client_cascade(self, owner_id: int, client_id: int) -> None:
        """Supprime un client, ses projets et leurs saisies en une seule unité.

        Raises:
            NotFoundFailure: si le client est absent ou non possédé.
        """

    def find_project_owned_by(self, owner_id: int, project_id: int) -> Project | None:
        """Retourne le projet s'il appartient (via son client) à l'utilisateur."""

    def create_time_entry(self, owner_id: int, entry: TimeEntryDraft) -> TimeEntry:
        """Crée une saisie de temps.

        Raises:
            NotFoundFailure: si le projet est absent ou non possédé.
        """

    def list_time_entries(self, owner_id: int, query: TimeEntryQuery) -> list[TimeEntryView]:
        """Liste les saisies (date desc, création desc) filtrées et paginées."""

    def delete_time_entry(self, owner_id: int, entry_id: int) -> None:
        """Supprime une saisie.

        Raises:
            NotFoundFailure: si la saisie est absente ou non possédée.
        """

    def window_totals(self, owner_id: int, start: dt.date, end: dt.date) -> WindowTotals:
        """Cumule durées et gains des saisies dont la date est dans [start, end]."""


def window_totals_from(pairs: Iterable[tuple[Decimal, int]]) -> WindowTotals:
    """Agrège des couples (taux horaire, secondes) en `WindowTotals`.

    Partagé par les deux stores pour que les gains soient calculés à l'identique.
    """
    total_seconds = 0
    earnings = Decimal("0")
    for rate, seconds in pairs:
        total_seconds += seconds
        earnings += Decimal(seconds) / SECONDS_PER_HOUR * Decimal(rate)
    return WindowTotals(total_seconds=total_seconds, earnings=earnings)
