from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user_id
from ..schemas.documents import ArchiveRequest, Document, DocumentCreate, DocumentType, DocumentUpdate, LinkRequest
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=List[Document])
async def list_documents(
    type: Optional[DocumentType] = None,
    tag: Optional[str] = None,
    job_number: Optional[str] = None,
    active_only: bool = False,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    store = stores.documents
    if tag:
        docs = store.by_tag(tag)
    elif type:
        docs = store.by_type(type)
    elif job_number:
        docs = store.by_job(job_number)
    elif active_only:
        docs = store.active()
    else:
        docs = store.documents
    return docs


@router.post("", response_model=Document, status_code=201)
async def create_document(
    body: DocumentCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if not body.metadata.author:
        body.metadata.author = user_id
    return stores.documents.add(body)


@router.get("/{document_id}", response_model=Document)
async def get_document(document_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    document = stores.documents.get(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.patch("/{document_id}", response_model=Document)
async def update_document(
    document_id: str,
    body: DocumentUpdate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    # NotFoundError is mapped to 404 by the app's exception handler
    return stores.documents.update(document_id, body)


@router.post("/{document_id}/archive", response_model=Document)
async def archive_document(
    document_id: str,
    body: ArchiveRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    document = stores.documents.archive(document_id, body.reason)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.post("/{document_id}/links")
async def link_documents(
    document_id: str,
    body: LinkRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    linked = stores.documents.link_related(document_id, body.target_id)
    return {"linked": linked}
