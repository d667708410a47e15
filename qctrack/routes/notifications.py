from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user_id
from ..schemas.notifications import Notification, NotificationCreate, UnreadCount
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[Notification])
async def list_notifications(
    limit: Optional[int] = 50,
    unread_only: bool = False,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    """Notifications addressed to the current user plus broadcasts, newest first."""
    return stores.notifications.list(limit=limit, unread_only=unread_only, user_id=user_id)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return UnreadCount(unread=stores.notifications.unread_count, total=len(stores.notifications.notifications))


@router.post("", response_model=Notification, status_code=201)
async def create_notification(
    body: NotificationCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.notifications.add(**body.model_dump())


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if not stores.notifications.mark_read(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "ok"}


@router.post("/read-all")
async def mark_all_read(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    changed = stores.notifications.mark_all_read()
    return {"status": "ok", "updated": changed}
