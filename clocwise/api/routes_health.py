"""
Endpoint de santé pour vérifier la disponibilité de l'API et du stockage.

Expose `/health` pour signaler l'état général de l'application et le backend de stockage actif.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from clocwise.api.deps import get_container
from clocwise.core.container import Container

router = APIRouter(tags=["health"])


@router.get("/health")
def health(c: Container = Depends(get_container)):
    """Vérifie la disponibilité de l'API et le backend de stockage."""
    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "storage": c.probe_storage(),
    }
