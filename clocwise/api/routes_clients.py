"""
Routes des clients: liste avec projets imbriqués, création (client + projet), suppression.
"""

from fastapi import APIRouter, Depends

from clocwise.api.deps import get_container, get_current_identity
from clocwise.api.schemas import ClientOut, ClientPayload, MessageOut
from clocwise.core.container import Container
from clocwise.domain.entities import Identity

router = APIRouter(prefix="/clients", tags=["clients"])
current_identity_dep = Depends(get_current_identity)


@router.get("", response_model=list[ClientOut])
def list_clients(
    identity: Identity = current_identity_dep, c: Container = Depends(get_container)
):
    """Liste les clients de l'utilisateur, plus récents d'abord."""
    return [ClientOut.from_entity(cl) for cl in c.client_service.list(identity)]


@router.post("", response_model=ClientOut, status_code=201)
def create_client(
    p: ClientPayload,
    identity: Identity = current_identity_dep,
    c: Container = Depends(get_container),
):
    """Crée un client et son projet initial de manière atomique."""
    client = c.client_service.create(
        identity,
        name=p.name,
        email=p.email,
        hourly_rate=p.hourly_rate,
        project_name=p.project_name,
        project_description=p.project_description,
    )
    return ClientOut.from_entity(client)


@router.delete("/{client_id}", response_model=MessageOut)
def delete_client(
    client_id: int,
    identity: Identity = current_identity_dep,
    c: Container = Depends(get_container),
):
    """Supprime le client, ses projets et leurs saisies (404 si absent ou non possédé)."""
    c.client_service.delete(identity, client_id)
    return MessageOut(message="Client deleted successfully")
