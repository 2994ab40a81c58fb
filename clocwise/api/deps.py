"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Centraliser l'accès au conteneur (services, dépôts) pour les endpoints.
- Offrir un point d'ancrage surchargeable en test via `app.dependency_overrides`.
- Extraire et valider l'identité de l'appelant à partir de l'en-tête `Authorization`.
"""

from fastapi import Depends, Header

from clocwise.core.container import Container, container
from clocwise.domain.entities import Identity


def get_container() -> Container:
    """Retourne le conteneur applicatif."""
    return container


def get_current_identity(
    authorization: str | None = Header(None),
    c: Container = Depends(get_container),
) -> Identity:
    """Extrait et valide l'utilisateur courant à partir du token d'autorisation."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    return c.auth_service.authenticate(token)
