# ============================================================
# Module : clocwise/infra/repo/sql_store.py
# Objet  : Store primaire SQL (SQLAlchemy) du registre de temps.
# Invariants :
#  - Une opération = une transaction (session_scope).
#  - Les pannes de connexion deviennent BackendUnavailable, rien d'autre.
#  - Suppression d'un client: saisies -> projets -> client, même transaction.
# ============================================================
"""Store primaire adossé à une base relationnelle via SQLAlchemy.

En production l'URL pointe vers Postgres (driver psycopg); les tests utilisent SQLite en mémoire.
"""

from __future__ import annotations

import datetime as dt
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy import delete, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from clocwise.domain.entities import (
    Client,
    ClientDraft,
    Plan,
    Project,
    ProjectDraft,
    ProjectStatus,
    TimeEntry,
    TimeEntryDraft,
    TimeEntryQuery,
    TimeEntryView,
    User,
    WindowTotals,
)
from clocwise.domain.errors import (
    AuthFailure,
    BackendUnavailable,
    ConflictFailure,
    LedgerError,
    NotFoundFailure,
)
from clocwise.infra.repo.base import window_totals_from
from clocwise.infra.repo.db import get_session_factory, session_scope
from clocwise.infra.repo.models import Base, ClientORM, ProjectORM, TimeEntryORM, UserORM

log = structlog.get_logger(__name__)

_UNAVAILABLE_ERRORS = (
    DisconnectionError,
    PoolTimeoutError,
    ConnectionError,
    TimeoutError,
)

# SQLSTATE: 08xxx connexion, 57P0x arrêt du serveur, 57014 statement_timeout
_UNAVAILABLE_SQLSTATE_PREFIXES = ("08", "57P0", "57014")
_SQLITE_CANTOPEN = 14


def is_connectivity_error(err: BaseException) -> bool:
    """Vrai si l'erreur signale une base injoignable plutôt qu'une requête en échec."""
    if isinstance(err, _UNAVAILABLE_ERRORS):
        return True
    if not isinstance(err, DBAPIError):
        return False
    if err.connection_invalidated:
        return True
    orig = err.orig
    sqlstate = getattr(orig, "sqlstate", None)
    if sqlstate:
        return sqlstate.startswith(_UNAVAILABLE_SQLSTATE_PREFIXES)
    if isinstance(orig, sqlite3.Error):
        return getattr(orig, "sqlite_errorcode", 0) & 0xFF == _SQLITE_CANTOPEN
    # Le driver n'a pas pu ouvrir ou a perdu la connexion (pas de code serveur)
    return isinstance(err, (OperationalError, InterfaceError))


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def _utc(value: dt.datetime) -> dt.datetime:
    """SQLite relit les dates sans fuseau: on les ramène en UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.UTC)
    return value


def _to_user(row: UserORM) -> User:
    return User(
        id=row.id,
        full_name=row.full_name,
        email=row.email,
        password_hash=row.password_hash,
        plan=Plan(row.plan),
        created_at=_utc(row.created_at),
    )


def _to_project(row: ProjectORM) -> Project:
    return Project(
        id=row.id,
        client_id=row.client_id,
        name=row.name,
        description=row.description or "",
        status=ProjectStatus(row.status),
        created_at=_utc(row.created_at),
    )


def _to_client(row: ClientORM, projects: list[ProjectORM]) -> Client:
    return Client(
        id=row.id,
        owner_user_id=row.user_id,
        name=row.name,
        email=row.email,
        hourly_rate=row.hourly_rate,
        created_at=_utc(row.created_at),
        projects=[_to_project(p) for p in projects],
    )


def _to_entry(row: TimeEntryORM) -> TimeEntry:
    return TimeEntry(
        id=row.id,
        project_id=row.project_id,
        date=row.date,
        start_time=row.start_time,
        duration_seconds=row.duration,
        description=row.description or "",
        created_at=_utc(row.created_at),
    )


class SqlLedgerStore:
    """Implémentation SQL du `LedgerStore`.

    Le schéma est créé paresseusement au premier appel réussi; si la base est injoignable à ce
    moment, la création est retentée à l'appel suivant.
    """

    name = "primary"

    def __init__(self, engine: Engine) -> None:
        """Construit le store avec un moteur déjà configuré (timeouts compris)."""
        self.engine = engine
        self._sessions = get_session_factory(engine)
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        """Traduit les pannes de connexion en `BackendUnavailable`."""
        try:
            self._ensure_schema()
            yield
        except LedgerError:
            raise
        except Exception as err:
            if is_connectivity_error(err):
                raise BackendUnavailable(f"primary store unavailable during {op}") from err
            raise

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                Base.metadata.create_all(self.engine)
                self._schema_ready = True
                log.info("schema_created", backend=self.name)

    @staticmethod
    def _owned_project_stmt(owner_id: int, project_id: int):
        return (
            select(ProjectORM)
            .join(ClientORM, ProjectORM.client_id == ClientORM.id)
            .where(ProjectORM.id == project_id, ClientORM.user_id == owner_id)
        )

    def ping(self) -> None:
        """Exécute `SELECT 1` sur une connexion du pool."""
        with self._guard("ping"), self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def create_user(
        self, full_name: str, email: str, password_hash: str, plan: Plan
    ) -> User:
        """Crée un utilisateur; l'index unique sur l'email tranche les courses."""
        with self._guard("create_user"):
            try:
                with session_scope(self._sessions) as session:
                    existing = session.execute(
                        select(UserORM.id).where(func.lower(UserORM.email) == email.lower())
                    ).first()
                    if existing is not None:
                        raise ConflictFailure("User already exists")
                    row = UserORM(
                        full_name=full_name,
                        email=email.lower(),
                        password_hash=password_hash,
                        plan=plan.value,
                        created_at=_now(),
                    )
                    session.add(row)
                    session.flush()
                    user = _to_user(row)
            except IntegrityError as err:
                raise ConflictFailure("User already exists") from err
        return user

    def find_user_by_email(self, email: str) -> User | None:
        """Recherche un utilisateur par email, sans tenir compte de la casse."""
        with self._guard("find_user_by_email"), session_scope(self._sessions) as session:
            row = session.execute(
                select(UserORM).where(func.lower(UserORM.email) == email.lower())
            ).scalar_one_or_none()
            return _to_user(row) if row else None

    def create_client_with_project(
        self, owner_id: int, client: ClientDraft, project: ProjectDraft
    ) -> Client:
        """Insère client puis projet dans la même transaction (rollback global en cas d'échec)."""
        with self._guard("create_client_with_project"), session_scope(
            self._sessions
        ) as session:
            # Jeton émis par le store de secours: l'utilisateur n'existe pas ici
            if session.get(UserORM, owner_id) is None:
                raise AuthFailure("User not found")
            now = _now()
            client_row = ClientORM(
                user_id=owner_id,
                name=client.name,
                email=client.email,
                hourly_rate=client.hourly_rate,
                created_at=now,
            )
            session.add(client_row)
            session.flush()
            project_row = ProjectORM(
                client_id=client_row.id,
                name=project.name,
                description=project.description,
                status=project.status.value,
                created_at=now,
            )
            session.add(project_row)
            session.flush()
            return _to_client(client_row, [project_row])

    def list_clients_with_projects(self, owner_id: int) -> list[Client]:
        """Deux requêtes: les clients, puis tous leurs projets."""
        with self._guard("list_clients_with_projects"), session_scope(
            self._sessions
        ) as session:
            clients = (
                session.execute(
                    select(ClientORM)
                    .where(ClientORM.user_id == owner_id)
                    .order_by(ClientORM.created_at.desc(), ClientORM.id.desc())
                )
                .scalars()
                .all()
            )
            if not clients:
                return []
            projects = (
                session.execute(
                    select(ProjectORM)
                    .where(ProjectORM.client_id.in_([c.id for c in clients]))
                    .order_by(ProjectORM.created_at.desc(), ProjectORM.id.desc())
                )
                .scalars()
                .all()
            )
            by_client: dict[int, list[ProjectORM]] = {}
            for p in projects:
                by_client.setdefault(p.client_id, []).append(p)
            return [_to_client(c, by_client.get(c.id, [])) for c in clients]

    def delete_client_cascade(self, owner_id: int, client_id: int) -> None:
        """Supprime saisies, projets puis client, explicitement et dans cet ordre."""
        with self._guard("delete_client_cascade"), session_scope(self._sessions) as session:
            owned = session.execute(
                select(ClientORM.id).where(
                    ClientORM.id == client_id, ClientORM.user_id == owner_id
                )
            ).first()
            if owned is None:
                raise NotFoundFailure("Client not found")
            project_ids = select(ProjectORM.id).where(ProjectORM.client_id == client_id)
            opts = {"synchronize_session": False}
            session.execute(
                delete(TimeEntryORM).where(TimeEntryORM.project_id.in_(project_ids)),
                execution_options=opts,
            )
            session.execute(
                delete(ProjectORM).where(ProjectORM.client_id == client_id),
                execution_options=opts,
            )
            session.execute(
                delete(ClientORM).where(ClientORM.id == client_id), execution_options=opts
            )

    def find_project_owned_by(self, owner_id: int, project_id: int) -> Project | None:
        """Retourne le projet si le chemin projet -> client -> utilisateur correspond."""
        with self._guard("find_project_owned_by"), session_scope(self._sessions) as session:
            row = session.execute(
                self._owned_project_stmt(owner_id, project_id)
            ).scalar_one_or_none()
            return _to_project(row) if row else None

    def create_time_entry(self, owner_id: int, entry: TimeEntryDraft) -> TimeEntry:
        """Vérifie la propriété du projet et insère la saisie dans la même transaction."""
        with self._guard("create_time_entry"), session_scope(self._sessions) as session:
            project = session.execute(
                self._owned_project_stmt(owner_id, entry.project_id)
            ).scalar_one_or_none()
            if project is None:
                raise NotFoundFailure("Project not found")
            row = TimeEntryORM(
                project_id=project.id,
                date=entry.date,
                start_time=entry.start_time,
                duration=entry.duration_seconds,
                description=entry.description,
                created_at=_now(),
            )
            session.add(row)
            session.flush()
            return _to_entry(row)

    def list_time_entries(self, owner_id: int, query: TimeEntryQuery) -> list[TimeEntryView]:
        """Liste les saisies jointes à leur projet et client."""
        stmt = (
            select(TimeEntryORM, ProjectORM.name, ClientORM.name, ClientORM.hourly_rate)
            .join(ProjectORM, TimeEntryORM.project_id == ProjectORM.id)
            .join(ClientORM, ProjectORM.client_id == ClientORM.id)
            .where(ClientORM.user_id == owner_id)
        )
        if query.start_date is not None:
            stmt = stmt.where(TimeEntryORM.date >= query.start_date)
        if query.end_date is not None:
            stmt = stmt.where(TimeEntryORM.date <= query.end_date)
        if query.project_id is not None:
            stmt = stmt.where(TimeEntryORM.project_id == query.project_id)
        stmt = (
            stmt.order_by(
                TimeEntryORM.date.desc(),
                TimeEntryORM.created_at.desc(),
                TimeEntryORM.id.desc(),
            )
            .limit(query.limit)
            .offset(query.offset)
        )
        with self._guard("list_time_entries"), session_scope(self._sessions) as session:
            return [
                TimeEntryView(
                    **_to_entry(entry).model_dump(),
                    project_name=project_name,
                    client_name=client_name,
                    hourly_rate=rate,
                )
                for entry, project_name, client_name, rate in session.execute(stmt)
            ]

    def delete_time_entry(self, owner_id: int, entry_id: int) -> None:
        """Supprime une saisie après vérification du chemin de propriété."""
        with self._guard("delete_time_entry"), session_scope(self._sessions) as session:
            owned = session.execute(
                select(TimeEntryORM.id)
                .join(ProjectORM, TimeEntryORM.project_id == ProjectORM.id)
                .join(ClientORM, ProjectORM.client_id == ClientORM.id)
                .where(TimeEntryORM.id == entry_id, ClientORM.user_id == owner_id)
            ).first()
            if owned is None:
                raise NotFoundFailure("Time entry not found")
            session.execute(
                delete(TimeEntryORM).where(TimeEntryORM.id == entry_id),
                execution_options={"synchronize_session": False},
            )

    def window_totals(self, owner_id: int, start: dt.date, end: dt.date) -> WindowTotals:
        """Somme des durées par client (taux horaire) sur [start, end]."""
        stmt = (
            select(ClientORM.hourly_rate, func.coalesce(func.sum(TimeEntryORM.duration), 0))
            .select_from(TimeEntryORM)
            .join(ProjectORM, TimeEntryORM.project_id == ProjectORM.id)
            .join(ClientORM, ProjectORM.client_id == ClientORM.id)
            .where(
                ClientORM.user_id == owner_id,
                TimeEntryORM.date >= start,
                TimeEntryORM.date <= end,
            )
            .group_by(ClientORM.id, ClientORM.hourly_rate)
        )
        with self._guard("window_totals"), session_scope(self._sessions) as session:
            return window_totals_from(
                (rate, int(seconds)) for rate, seconds in session.execute(stmt)
            )
