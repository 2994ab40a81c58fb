"""
Endpoint de statistiques: heures du jour, de la semaine et du mois, gains du mois.
"""

from fastapi import APIRouter, Depends

from clocwise.api.deps import get_container, get_current_identity
from clocwise.api.schemas import StatsOut
from clocwise.core.container import Container
from clocwise.domain.entities import Identity

router = APIRouter(tags=["stats"])


@router.get("/stats", response_model=StatsOut)
def get_stats(
    identity: Identity = Depends(get_current_identity),
    c: Container = Depends(get_container),
):
    """Calcule les totaux de l'utilisateur courant."""
    return StatsOut.from_summary(c.stats.compute(identity.user_id))
