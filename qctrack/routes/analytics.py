from fastapi import APIRouter, Depends

from ..auth.security import get_current_user_id
from ..schemas.analytics import AnalyticsSummary
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/summary", response_model=AnalyticsSummary)
async def summary(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.analytics.summary()
