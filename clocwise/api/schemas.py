# Schémas Pydantic exposés par l'API (requêtes et réponses), en camelCase côté JSON.

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from clocwise.domain.entities import Client, Project, TimeEntry, TimeEntryView, User
from clocwise.domain.stats import StatsSummary


class CamelModel(BaseModel):
    """Base: noms Python en snake_case, JSON en camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterPayload(CamelModel):
    """Inscription. Les champs manquants sont signalés par le service (400)."""

    full_name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginPayload(CamelModel):
    """Connexion."""

    email: str | None = None
    password: str | None = None


class ClientPayload(CamelModel):
    """Création d'un client et de son projet initial."""

    name: str | None = None
    email: str | None = None
    hourly_rate: Decimal | str | None = None
    project_name: str | None = None
    project_description: str | None = None


class TimeEntryPayload(CamelModel):
    """Création d'une saisie; `duration` est exprimée en secondes."""

    project_id: int | str | None = None
    date: str | None = None
    start_time: str | None = None
    duration: int | str | None = None
    description: str | None = None


class UserSummary(CamelModel):
    id: int
    full_name: str
    email: str
    plan: str
    created_at: dt.datetime

    @classmethod
    def from_entity(cls, user: User) -> UserSummary:
        return cls(
            id=user.id,
            full_name=user.full_name,
            email=user.email,
            plan=user.plan.value,
            created_at=user.created_at,
        )


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserSummary


class ProjectOut(CamelModel):
    id: int
    client_id: int
    name: str
    description: str
    status: str
    created_at: dt.datetime

    @classmethod
    def from_entity(cls, project: Project) -> ProjectOut:
        return cls(
            id=project.id,
            client_id=project.client_id,
            name=project.name,
            description=project.description,
            status=project.status.value,
            created_at=project.created_at,
        )


class ClientOut(CamelModel):
    id: int
    user_id: int
    name: str
    email: str | None
    hourly_rate: Decimal
    created_at: dt.datetime
    projects: list[ProjectOut]

    @classmethod
    def from_entity(cls, client: Client) -> ClientOut:
        return cls(
            id=client.id,
            user_id=client.owner_user_id,
            name=client.name,
            email=client.email,
            hourly_rate=client.hourly_rate,
            created_at=client.created_at,
            projects=[ProjectOut.from_entity(p) for p in client.projects],
        )


class TimeEntryOut(CamelModel):
    id: int
    project_id: int
    date: dt.date
    start_time: dt.time
    duration: int
    description: str
    created_at: dt.datetime

    @classmethod
    def from_entity(cls, entry: TimeEntry) -> TimeEntryOut:
        return cls(
            id=entry.id,
            project_id=entry.project_id,
            date=entry.date,
            start_time=entry.start_time,
            duration=entry.duration_seconds,
            description=entry.description,
            created_at=entry.created_at,
        )


class TimeEntryListItem(TimeEntryOut):
    project_name: str
    client_name: str
    hourly_rate: Decimal

    @classmethod
    def from_view(cls, entry: TimeEntryView) -> TimeEntryListItem:
        return cls(
            **TimeEntryOut.from_entity(entry).model_dump(),
            project_name=entry.project_name,
            client_name=entry.client_name,
            hourly_rate=entry.hourly_rate,
        )


class StatsOut(CamelModel):
    today_hours: str
    week_hours: str
    month_hours: str
    total_earnings: str

    @classmethod
    def from_summary(cls, summary: StatsSummary) -> StatsOut:
        return cls(
            today_hours=summary.today_hours,
            week_hours=summary.week_hours,
            month_hours=summary.month_hours,
            total_earnings=summary.total_earnings,
        )


class MessageOut(BaseModel):
    message: str
