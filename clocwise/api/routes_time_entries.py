"""
Routes des saisies de temps: liste filtrée et paginée, création, suppression.
"""

from fastapi import APIRouter, Depends, Query

from clocwise.api.deps import get_container, get_current_identity
from clocwise.api.schemas import MessageOut, TimeEntryListItem, TimeEntryOut, TimeEntryPayload
from clocwise.core.container import Container
from clocwise.domain.entities import Identity

router = APIRouter(prefix="/time-entries", tags=["time-entries"])
current_identity_dep = Depends(get_current_identity)


@router.get("", response_model=list[TimeEntryListItem])
def list_time_entries(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    project_id: str | None = Query(None, alias="projectId"),
    limit: str | None = None,
    offset: str | None = None,
    identity: Identity = current_identity_dep,
    c: Container = Depends(get_container),
):
    """Liste les saisies (date desc, création desc); bornes de dates incluses."""
    entries = c.time_entry_service.list(
        identity,
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        limit=limit,
        offset=offset,
    )
    return [TimeEntryListItem.from_view(e) for e in entries]


@router.post("", response_model=TimeEntryOut, status_code=201)
def create_time_entry(
    p: TimeEntryPayload,
    identity: Identity = current_identity_dep,
    c: Container = Depends(get_container),
):
    """Crée une saisie sur un projet de l'utilisateur (404 si le projet n'est pas le sien)."""
    entry = c.time_entry_service.create(
        identity,
        project_id=p.project_id,
        date=p.date,
        start_time=p.start_time,
        duration_seconds=p.duration,
        description=p.description,
    )
    return TimeEntryOut.from_entity(entry)


@router.delete("/{entry_id}", response_model=MessageOut)
def delete_time_entry(
    entry_id: int,
    identity: Identity = current_identity_dep,
    c: Container = Depends(get_container),
):
    """Supprime une saisie de l'utilisateur."""
    c.time_entry_service.delete(identity, entry_id)
    return MessageOut(message="Time entry deleted successfully")
