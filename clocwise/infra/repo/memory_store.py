"""
In-memory ledger store used when the primary database is unreachable.

Volatile and single-process: data lives as long as the process. Each entity family has one coarse
lock (users, and the client/project/time-entry ledger) so compound operations such as
lookup-then-insert or the cascading delete never interleave. New records are fully built before
being published into the visible tables.
"""

from __future__ import annotations

import datetime as dt
import itertools
import threading

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
from clocwise.domain.errors import ConflictFailure, NotFoundFailure
from clocwise.infra.repo.base import window_totals_from


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class InMemoryLedgerStore:
    """Store de secours en mémoire (même contrat que le store SQL)."""

    name = "fallback"

    def __init__(self, id_start: int = 1) -> None:
        """Initialise des tables vides; les identifiants démarrent à `id_start`."""
        self._id_start = id_start
        self._users_lock = threading.RLock()
        self._ledger_lock = threading.RLock()
        self.reset()

    def reset(self) -> None:
        """Vide toutes les tables (utile en tests)."""
        with self._users_lock, self._ledger_lock:
            self._users: dict[int, User] = {}
            self._user_ids_by_email: dict[str, int] = {}
            self._clients: dict[int, Client] = {}
            self._projects: dict[int, Project] = {}
            self._entries: dict[int, TimeEntry] = {}
            self._user_seq = itertools.count(self._id_start)
            self._client_seq = itertools.count(self._id_start)
            self._project_seq = itertools.count(self._id_start)
            self._entry_seq = itertools.count(self._id_start)

    def ping(self) -> None:
        """Toujours disponible."""
        return None

    # --- users -----------------------------------------------------------

    def create_user(
        self, full_name: str, email: str, password_hash: str, plan: Plan
    ) -> User:
        """Vérifie l'unicité puis publie l'utilisateur sous le verrou de la famille."""
        key = email.lower()
        with self._users_lock:
            if key in self._user_ids_by_email:
                raise ConflictFailure("User already exists")
            user = User(
                id=next(self._user_seq),
                full_name=full_name,
                email=key,
                password_hash=password_hash,
                plan=plan,
                created_at=_now(),
            )
            self._users[user.id] = user
            self._user_ids_by_email[key] = user.id
        return user.model_copy()

    def find_user_by_email(self, email: str) -> User | None:
        """Recherche un utilisateur par email, sans tenir compte de la casse."""
        with self._users_lock:
            user_id = self._user_ids_by_email.get(email.lower())
            user = self._users.get(user_id) if user_id is not None else None
            return user.model_copy() if user else None

    # --- ledger ----------------------------------------------------------

    def _owned_client(self, owner_id: int, client_id: int) -> Client | None:
        client = self._clients.get(client_id)
        if client is None or client.owner_user_id != owner_id:
            return None
        return client

    def _owned_project(self, owner_id: int, project_id: int) -> Project | None:
        project = self._projects.get(project_id)
        if project is None or self._owned_client(owner_id, project.client_id) is None:
            return None
        return project

    def _owned_entries(self, owner_id: int):
        for entry in self._entries.values():
            project = self._owned_project(owner_id, entry.project_id)
            if project is not None:
                yield entry, project, self._clients[project.client_id]

    def create_client_with_project(
        self, owner_id: int, client: ClientDraft, project: ProjectDraft
    ) -> Client:
        """Construit client et projet, puis les publie ensemble."""
        with self._ledger_lock:
            now = _now()
            client_row = Client(
                id=next(self._client_seq),
                owner_user_id=owner_id,
                name=client.name,
                email=client.email,
                hourly_rate=client.hourly_rate,
                created_at=now,
            )
            project_row = Project(
                id=next(self._project_seq),
                client_id=client_row.id,
                name=project.name,
                description=project.description,
                status=project.status,
                created_at=now,
            )
            self._clients[client_row.id] = client_row
            self._projects[project_row.id] = project_row
            return client_row.model_copy(update={"projects": [project_row.model_copy()]})

    def list_clients_with_projects(self, owner_id: int) -> list[Client]:
        """Clients du propriétaire, plus récents d'abord, avec leurs projets."""
        with self._ledger_lock:
            clients = [c for c in self._clients.values() if c.owner_user_id == owner_id]
            clients.sort(key=lambda c: (c.created_at, c.id), reverse=True)
            out: list[Client] = []
            for c in clients:
                projects = [p for p in self._projects.values() if p.client_id == c.id]
                projects.sort(key=lambda p: (p.created_at, p.id), reverse=True)
                out.append(c.model_copy(update={"projects": [p.model_copy() for p in projects]}))
            return out

    def delete_client_cascade(self, owner_id: int, client_id: int) -> None:
        """Supprime saisies, projets puis client dans une seule section critique."""
        with self._ledger_lock:
            if self._owned_client(owner_id, client_id) is None:
                raise NotFoundFailure("Client not found")
            project_ids = {p.id for p in self._projects.values() if p.client_id == client_id}
            for entry_id in [
                e.id for e in self._entries.values() if e.project_id in project_ids
            ]:
                del self._entries[entry_id]
            for project_id in project_ids:
                del self._projects[project_id]
            del self._clients[client_id]

    def find_project_owned_by(self, owner_id: int, project_id: int) -> Project | None:
        """Retourne le projet s'il appartient à l'utilisateur via son client."""
        with self._ledger_lock:
            project = self._owned_project(owner_id, project_id)
            return project.model_copy() if project else None

    def create_time_entry(self, owner_id: int, entry: TimeEntryDraft) -> TimeEntry:
        """Vérifie la propriété du projet puis publie la saisie."""
        with self._ledger_lock:
            if self._owned_project(owner_id, entry.project_id) is None:
                raise NotFoundFailure("Project not found")
            row = TimeEntry(
                id=next(self._entry_seq),
                project_id=entry.project_id,
                date=entry.date,
                start_time=entry.start_time,
                duration_seconds=entry.duration_seconds,
                description=entry.description,
                created_at=_now(),
            )
            self._entries[row.id] = row
            return row.model_copy()

    def list_time_entries(self, owner_id: int, query: TimeEntryQuery) -> list[TimeEntryView]:
        """Filtre, trie (date desc, création desc, id desc) et pagine."""
        with self._ledger_lock:
            rows = []
            for entry, project, client in self._owned_entries(owner_id):
                if query.start_date is not None and entry.date < query.start_date:
                    continue
                if query.end_date is not None and entry.date > query.end_date:
                    continue
                if query.project_id is not None and entry.project_id != query.project_id:
                    continue
                rows.append(
                    TimeEntryView(
                        **entry.model_dump(),
                        project_name=project.name,
                        client_name=client.name,
                        hourly_rate=client.hourly_rate,
                    )
                )
        rows.sort(key=lambda e: (e.date, e.created_at, e.id), reverse=True)
        return rows[query.offset : query.offset + query.limit]

    def delete_time_entry(self, owner_id: int, entry_id: int) -> None:
        """Supprime une saisie possédée par l'utilisateur."""
        with self._ledger_lock:
            entry = self._entries.get(entry_id)
            if entry is None or self._owned_project(owner_id, entry.project_id) is None:
                raise NotFoundFailure("Time entry not found")
            del self._entries[entry_id]

    def window_totals(self, owner_id: int, start: dt.date, end: dt.date) -> WindowTotals:
        """Cumule durées et gains sur [start, end]."""
        with self._ledger_lock:
            pairs = [
                (client.hourly_rate, entry.duration_seconds)
                for entry, _project, client in self._owned_entries(owner_id)
                if start <= entry.date <= end
            ]
        return window_totals_from(pairs)
