from fastapi import APIRouter, Depends

from sitetrack.api.deps import get_current_user, get_store
from sitetrack.core.reporting.dashboard import compile_dashboard
from sitetrack.core.reporting.schemas import DashboardSummary
from sitetrack.core.tracking.schemas import User
from sitetrack.core.tracking.store import ProjectStore

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardSummary)
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    store: ProjectStore = Depends(get_store),
):
    return compile_dashboard(store, current_user)
