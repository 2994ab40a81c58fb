"""
Routes d'authentification pour l'API.

Ce module fournit les endpoints d'inscription et de connexion. Les deux renvoient un jeton
porteur valable 30 jours et un résumé de l'utilisateur.
"""

from fastapi import APIRouter, Depends

from clocwise.api.deps import get_container
from clocwise.api.schemas import AuthResponse, LoginPayload, RegisterPayload, UserSummary
from clocwise.core.container import Container

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(p: RegisterPayload, c: Container = Depends(get_container)):
    """Inscrit un nouvel utilisateur (offre `starter`)."""
    result = c.auth_service.register(p.full_name, p.email, p.password)
    return AuthResponse(
        message="User created successfully",
        token=result.token,
        user=UserSummary.from_entity(result.user),
    )


@router.post("/login", response_model=AuthResponse)
def login(p: LoginPayload, c: Container = Depends(get_container)):
    """Authentifie un utilisateur et retourne un token d'accès."""
    result = c.auth_service.login(p.email, p.password)
    return AuthResponse(
        message="Login successful",
        token=result.token,
        user=UserSummary.from_entity(result.user),
    )
