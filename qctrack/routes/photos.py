from typing import List, Optional

import anyio
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..auth.security import get_current_user_id
from ..schemas.analysis import AnalysisResult, ComparisonResult
from ..schemas.media import DescriptionRequest, PhotoAttachment, PhotoCreate, PhotoMetadata, TagRequest
from ..services.container import QCStores, get_stores

router = APIRouter(prefix="/photos", tags=["photos"])


@router.get("", response_model=List[PhotoAttachment])
async def list_photos(
    deficiency_id: Optional[str] = None,
    inspection_id: Optional[str] = None,
    job_number: Optional[str] = None,
    location: Optional[str] = None,
    tag: Optional[str] = None,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    media = stores.media
    if deficiency_id:
        return media.by_deficiency(deficiency_id)
    if inspection_id:
        return media.by_inspection(inspection_id)
    if job_number:
        return media.by_job(job_number)
    if location:
        return media.by_location(location)
    if tag:
        return media.by_tag(tag)
    return media.photos


@router.post("", response_model=PhotoAttachment, status_code=201)
async def add_photo(
    body: PhotoCreate,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    """Register a photo; analysis continues in the background."""
    return await stores.media.add_photo(body)


@router.post("/upload", response_model=PhotoAttachment, status_code=201)
async def upload_photo(
    file: UploadFile = File(...),
    location: str = Form(...),
    job_number: str = Form(...),
    description: str = Form(""),
    job_type: Optional[str] = Form(None),
    deficiency_id: Optional[str] = Form(None),
    inspection_id: Optional[str] = Form(None),
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    data = await file.read()
    uploaded = await anyio.to_thread.run_sync(
        lambda: stores.records.upload_image(file.filename or "upload.jpg", data, file.content_type, job_number)
    )
    return await stores.media.add_photo(
        PhotoCreate(
            image_url=uploaded.url,
            description=description,
            location=location,
            job_number=job_number,
            job_type=job_type,
            deficiency_id=deficiency_id,
            inspection_id=inspection_id,
            metadata=PhotoMetadata(dimensions={"width": uploaded.width, "height": uploaded.height}),
        )
    )


@router.get("/{photo_id}", response_model=PhotoAttachment)
async def get_photo(photo_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    """Returns once any pending analysis of the photo has finished."""
    photo = await stores.media.get_photo(photo_id)
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return photo


@router.get("/{photo_id}/analysis", response_model=AnalysisResult)
async def get_analysis(photo_id: str, stores: QCStores = Depends(get_stores), user_id: str = Depends(get_current_user_id)):
    if stores.analysis is None:
        raise HTTPException(status_code=404, detail="Photo analysis is disabled")
    await stores.media.wait_for_analysis(photo_id)
    result = stores.analysis.get_analysis(photo_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return result


@router.get("/{photo_id}/compare/{previous_id}", response_model=ComparisonResult)
async def compare_photos(
    photo_id: str,
    previous_id: str,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    if stores.analysis is None:
        raise HTTPException(status_code=404, detail="Photo analysis is disabled")
    return stores.analysis.compare_with_previous(photo_id, previous_id)


@router.post("/{photo_id}/tags", response_model=PhotoAttachment)
async def add_tag(
    photo_id: str,
    body: TagRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    stores.media.add_tag(photo_id, body.tag)
    photo = await stores.media.get_photo(photo_id)
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return photo


@router.put("/{photo_id}/description", response_model=PhotoAttachment)
async def update_description(
    photo_id: str,
    body: DescriptionRequest,
    stores: QCStores = Depends(get_stores),
    user_id: str = Depends(get_current_user_id),
):
    photo = stores.media.update_description(photo_id, body.description)
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return photo
