"""
Entités du domaine métier.

Ce module définit les modèles de données partagés par les stores, les services et l'API:
utilisateurs, clients, projets et saisies de temps, ainsi que les brouillons utilisés à la
création et les objets de requête.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class Plan(str, Enum):
    """Offre souscrite par un utilisateur."""

    STARTER = "starter"
    PRO = "pro"


class ProjectStatus(str, Enum):
    """Statut d'un projet."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class User(BaseModel):
    """Utilisateur (propriétaire de clients). L'email est toujours en minuscules."""

    id: int
    full_name: str
    email: str
    password_hash: str
    plan: Plan = Plan.STARTER
    created_at: dt.datetime


class Project(BaseModel):
    """Projet rattaché à un client unique."""

    id: int
    client_id: int
    name: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: dt.datetime


class Client(BaseModel):
    """Client d'un utilisateur, avec ses projets imbriqués en lecture."""

    id: int
    owner_user_id: int
    name: str
    email: str | None = None
    hourly_rate: Decimal
    created_at: dt.datetime
    projects: list[Project] = Field(default_factory=list)


class TimeEntry(BaseModel):
    """Saisie de temps sur un projet (durée en secondes, > 0)."""

    id: int
    project_id: int
    date: dt.date
    start_time: dt.time
    duration_seconds: int
    description: str = ""
    created_at: dt.datetime


class TimeEntryView(TimeEntry):
    """Saisie enrichie du projet et du client (forme de lecture des listes)."""

    project_name: str
    client_name: str
    hourly_rate: Decimal


class ClientDraft(BaseModel):
    """Données validées pour créer un client."""

    name: str
    email: str | None = None
    hourly_rate: Decimal


class ProjectDraft(BaseModel):
    """Données validées pour créer le projet initial d'un client."""

    name: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE


class TimeEntryDraft(BaseModel):
    """Données validées pour créer une saisie de temps."""

    project_id: int
    date: dt.date
    start_time: dt.time
    duration_seconds: int
    description: str = ""


class TimeEntryQuery(BaseModel):
    """Filtre et pagination pour lister les saisies (bornes de dates inclusives)."""

    start_date: dt.date | None = None
    end_date: dt.date | None = None
    project_id: int | None = None
    limit: int = 50
    offset: int = 0


class WindowTotals(BaseModel):
    """Totaux d'une fenêtre de dates: secondes cumulées et gains."""

    total_seconds: int = 0
    earnings: Decimal = Decimal("0")


class Identity(BaseModel):
    """Identité authentifiée extraite d'un jeton."""

    user_id: int
    email: str
