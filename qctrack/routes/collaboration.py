from typing import List

from fastapi import APIRouter, Depends

from ..auth.security import get_current_user_id
from ..schemas.collaboration import Activity, ActivityCreate, Comment, CommentCreate, CommentEdit, ReactionRequest
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/collaboration", tags=["collaboration"])


@router.get("/entities/{entity_id}/comments", response_model=List[Comment])
async def list_comments(entity_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.collaboration.comments_for(entity_id)


@router.post("/entities/{entity_id}/comments", response_model=Comment, status_code=201)
async def add_comment(
    entity_id: str,
    body: CommentCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.collaboration.add_comment(
        entity_id,
        body.text,
        user_id,
        attachments=body.attachments,
        parent_id=body.parent_id,
        entity_type=body.entity_type,
    )


@router.patch("/entities/{entity_id}/comments/{comment_id}", response_model=Comment)
async def edit_comment(
    entity_id: str,
    comment_id: str,
    body: CommentEdit,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.collaboration.edit_comment(entity_id, comment_id, body.text, user_id)


@router.get("/entities/{entity_id}/comments/{comment_id}/replies", response_model=List[Comment])
async def list_replies(
    entity_id: str,
    comment_id: str,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.collaboration.replies(entity_id, comment_id)


@router.post("/entities/{entity_id}/comments/{comment_id}/reactions")
async def add_reaction(
    entity_id: str,
    comment_id: str,
    body: ReactionRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    added = stores.collaboration.add_reaction(entity_id, comment_id, user_id, body.reaction)
    return {"added": added}


@router.get("/entities/{entity_id}/activities", response_model=List[Activity])
async def entity_activities(
    entity_id: str,
    limit: int = 50,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.collaboration.activities_by_entity(entity_id, limit)


@router.get("/users/{target_user_id}/activities", response_model=List[Activity])
async def user_activities(
    target_user_id: str,
    limit: int = 50,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.collaboration.activities_by_user(target_user_id, limit)


@router.post("/activities", response_model=Activity, status_code=201)
async def log_activity(
    body: ActivityCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    return stores.collaboration.log_activity(body.type, body.entity_id, body.entity_type, user_id, body.data)


@router.get("/presence", response_model=List[str])
async def active_users(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    return stores.collaboration.active_users()


@router.post("/presence")
async def mark_active(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    stores.collaboration.mark_user_active(user_id)
    return {"active": True}


@router.delete("/presence")
async def mark_inactive(stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    stores.collaboration.mark_user_inactive(user_id)
    return {"active": False}
