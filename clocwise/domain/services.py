"""Services métier du registre de temps.

Responsabilités:
- `AuthService`: inscription, connexion et validation des jetons.
- `ClientService`: création d'un client avec son projet initial, liste, suppression en cascade.
- `TimeEntryService`: création, liste filtrée/paginée et suppression des saisies.

Les services valident les entrées (`ValidationFailure`) et délèguent la persistance aux dépôts,
qui choisissent eux-mêmes entre store primaire et store de secours.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import structlog

from clocwise.domain.auth import PasswordHasher, TokenIssuer
from clocwise.domain.entities import (
    Client,
    ClientDraft,
    Identity,
    Plan,
    ProjectDraft,
    TimeEntry,
    TimeEntryDraft,
    TimeEntryQuery,
    TimeEntryView,
    User,
)
from clocwise.domain.errors import (
    AuthFailure,
    ConflictFailure,
    InvalidTokenFailure,
    NotFoundFailure,
    ValidationFailure,
)
from clocwise.infra.repositories import (
    ClientRepository,
    ProjectRepository,
    TimeEntryRepository,
    UserRepository,
)

log = structlog.get_logger(__name__)

# Colonnes INTEGER et NUMERIC(12, 2) du store primaire
MAX_ID = 2**31 - 1
MAX_DURATION_SECONDS = 2**31 - 1
MAX_HOURLY_RATE = Decimal("1e10")
_CENTS = Decimal("0.01")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(value: Any, field: str) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value).strip())
    except ValueError as err:
        raise ValidationFailure(f"{field} must be a date (YYYY-MM-DD)") from err


def _parse_time(value: Any, field: str) -> dt.time:
    if isinstance(value, dt.time):
        return value
    try:
        return dt.time.fromisoformat(str(value).strip())
    except ValueError as err:
        raise ValidationFailure(f"{field} must be a time of day (HH:MM)") from err


def _parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationFailure(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as err:
        raise ValidationFailure(f"{field} must be an integer") from err


def _parse_rate(value: Any) -> Decimal:
    try:
        rate = Decimal(str(value).strip())
    except InvalidOperation as err:
        raise ValidationFailure("Hourly rate must be a number") from err
    if not rate.is_finite() or rate < 0:
        raise ValidationFailure("Hourly rate must be a non-negative number")
    if rate < MAX_HOURLY_RATE:
        rate = rate.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if rate >= MAX_HOURLY_RATE:
        raise ValidationFailure("Hourly rate is too large")
    return rate


def _is_storable_id(value: int) -> bool:
    """Un identifiant hors plage ne peut désigner aucun enregistrement."""
    return 1 <= value <= MAX_ID


@dataclass(frozen=True)
class AuthResult:
    """Résultat d'une inscription ou d'une connexion."""

    token: str
    user: User


class AuthService:
    """Orchestration de l'inscription et de la connexion."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        token_ttl: dt.timedelta = dt.timedelta(days=30),
        password_min_length: int = 6,
    ) -> None:
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.token_ttl = token_ttl
        self.password_min_length = password_min_length

    def register(self, full_name: Any, email: Any, password: Any) -> AuthResult:
        """Crée un compte `starter` et retourne un jeton valable `token_ttl`.

        Raises:
            ValidationFailure: champ manquant ou mot de passe trop court.
            ConflictFailure: email déjà utilisé (sans tenir compte de la casse).
        """
        if _blank(full_name) or _blank(email) or _blank(password):
            raise ValidationFailure("All fields are required")
        if len(str(password)) < self.password_min_length:
            raise ValidationFailure(
                f"Password must be at least {self.password_min_length} characters"
            )
        email_lower = str(email).strip().lower()
        if self.users.find_user_by_email(email_lower) is not None:
            raise ConflictFailure("User already exists")
        user = self.users.create_user(
            full_name=str(full_name).strip(),
            email=email_lower,
            password_hash=self.hasher.hash(str(password)),
            plan=Plan.STARTER,
        )
        log.info("user_registered", user_id=user.id)
        return AuthResult(token=self._issue(user), user=user)

    def login(self, email: Any, password: Any) -> AuthResult:
        """Vérifie les identifiants et retourne un nouveau jeton.

        Raises:
            ValidationFailure: email ou mot de passe manquant.
            AuthFailure: utilisateur inconnu ou mot de passe faux (même message).
        """
        if _blank(email) or _blank(password):
            raise ValidationFailure("Email and password are required")
        user = self.users.find_user_by_email(str(email).strip().lower())
        if user is None or not self.hasher.verify(str(password), user.password_hash):
            raise AuthFailure("Invalid credentials")
        return AuthResult(token=self._issue(user), user=user)

    def authenticate(self, token: str | None) -> Identity:
        """Valide un jeton porteur et retourne l'identité associée."""
        if not token:
            raise AuthFailure("Access token required")
        identity = self.tokens.verify(token)
        if identity is None:
            raise InvalidTokenFailure("Invalid token")
        return identity

    def _issue(self, user: User) -> str:
        return self.tokens.issue(user.id, user.email, self.token_ttl)


class ClientService:
    """Gestion des clients d'un utilisateur."""

    def __init__(self, clients: ClientRepository) -> None:
        self.clients = clients

    def create(
        self,
        identity: Identity,
        name: Any,
        email: Any,
        hourly_rate: Any,
        project_name: Any,
        project_description: Any = None,
    ) -> Client:
        """Crée le client et son projet initial en une seule opération atomique."""
        if _blank(name) or _blank(hourly_rate) or _blank(project_name):
            raise ValidationFailure("Name, hourly rate, and project name are required")
        client = ClientDraft(
            name=str(name).strip(),
            email=None if _blank(email) else str(email).strip(),
            hourly_rate=_parse_rate(hourly_rate),
        )
        project = ProjectDraft(
            name=str(project_name).strip(),
            description="" if _blank(project_description) else str(project_description),
        )
        return self.clients.create_client_with_project(identity.user_id, client, project)

    def list(self, identity: Identity) -> list[Client]:
        return self.clients.list_clients_with_projects(identity.user_id)

    def delete(self, identity: Identity, client_id: int) -> None:
        """Supprime le client et toutes ses données dépendantes."""
        if not _is_storable_id(client_id):
            raise NotFoundFailure("Client not found")
        self.clients.delete_client_cascade(identity.user_id, client_id)
        log.info("client_deleted", user_id=identity.user_id, client_id=client_id)


class TimeEntryService:
    """Gestion des saisies de temps d'un utilisateur."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        projects: ProjectRepository,
        default_page_size: int = 50,
        max_page_size: int = 500,
    ) -> None:
        self.entries = entries
        self.projects = projects
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def create(
        self,
        identity: Identity,
        project_id: Any,
        date: Any,
        start_time: Any,
        duration_seconds: Any,
        description: Any = None,
    ) -> TimeEntry:
        """Crée une saisie sur un projet possédé par l'utilisateur.

        Raises:
            ValidationFailure: champ manquant, durée non entière ou <= 0.
            NotFoundFailure: projet absent ou appartenant à un autre utilisateur.
        """
        if any(_blank(v) for v in (project_id, date, start_time, duration_seconds)):
            raise ValidationFailure("Project, date, start time, and duration are required")
        draft = TimeEntryDraft(
            project_id=_parse_int(project_id, "projectId"),
            date=_parse_date(date, "date"),
            start_time=_parse_time(start_time, "startTime"),
            duration_seconds=_parse_int(duration_seconds, "duration"),
            description="" if _blank(description) else str(description),
        )
        if draft.duration_seconds <= 0:
            raise ValidationFailure("Duration must be greater than zero")
        if draft.duration_seconds > MAX_DURATION_SECONDS:
            raise ValidationFailure("Duration is too large")
        if not _is_storable_id(draft.project_id):
            raise NotFoundFailure("Project not found")
        if self.projects.find_project_owned_by(identity.user_id, draft.project_id) is None:
            raise NotFoundFailure("Project not found")
        return self.entries.create_time_entry(identity.user_id, draft)

    def list(
        self,
        identity: Identity,
        start_date: Any = None,
        end_date: Any = None,
        project_id: Any = None,
        limit: Any = None,
        offset: Any = None,
    ) -> list[TimeEntryView]:
        """Liste les saisies (bornes de dates incluses), triées date desc puis création desc."""
        query = TimeEntryQuery(
            start_date=None if _blank(start_date) else _parse_date(start_date, "startDate"),
            end_date=None if _blank(end_date) else _parse_date(end_date, "endDate"),
            project_id=None if _blank(project_id) else _parse_int(project_id, "projectId"),
            limit=self.default_page_size if _blank(limit) else _parse_int(limit, "limit"),
            offset=0 if _blank(offset) else _parse_int(offset, "offset"),
        )
        if query.start_date and query.end_date and query.start_date > query.end_date:
            raise ValidationFailure("startDate must not be after endDate")
        if not 1 <= query.limit <= self.max_page_size:
            raise ValidationFailure(f"limit must be between 1 and {self.max_page_size}")
        if not 0 <= query.offset <= MAX_ID:
            raise ValidationFailure(f"offset must be between 0 and {MAX_ID}")
        if query.project_id is not None and not _is_storable_id(query.project_id):
            return []
        return self.entries.list_time_entries(identity.user_id, query)

    def delete(self, identity: Identity, entry_id: int) -> None:
        if not _is_storable_id(entry_id):
            raise NotFoundFailure("Time entry not found")
        self.entries.delete_time_entry(identity.user_id, entry_id)
