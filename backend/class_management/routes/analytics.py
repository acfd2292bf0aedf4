from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import require_permission
from ..permissions import CallerIdentity, Permission
from ..schemas import AnalyticsOverview
from ..services.analytics import overview

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/overview", response_model=AnalyticsOverview)
def analytics_overview(
    db: Session = Depends(get_db_session),
    _: CallerIdentity = Depends(require_permission(Permission.VIEW_ANALYTICS)),
):
    return overview(db)
