from fastapi import APIRouter, Depends
from app.core.clock import utc_now
from app.models.user import User
from app.repositories.store_scope import StoreRepository
from app.schemas.common import envelope
from app.services import inventory_reports
from app.services.ai_service import generate_inventory_briefing
from app.api.v1.dependencies import get_store_repository, require_permission_dependency

router = APIRouter()

@router.post("/inventory-briefing")
def inventory_briefing(
    repo: StoreRepository = Depends(get_store_repository),
    current_user: User = Depends(require_permission_dependency("ai", "use"))
):
    """
    AI briefing over the store's reorder recommendations and 30-day turnover.
    The numbers are always returned; the text falls back to a plain summary.
    """
    recommendations = inventory_reports.reorder_recommendations(repo)
    turnover = inventory_reports.turnover_report(repo)
    briefing = generate_inventory_briefing(recommendations, turnover)
    return envelope({
        **briefing,
        "recommendations_summary": recommendations["summary"],
        "turnover_stats": turnover["stats"],
        "generated_at": utc_now().isoformat(),
    })
