from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..services.container import QCStores, get_stores
from ..storage.local_provider import LocalStorageProvider

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/local/{key:path}")
def get_local_file(key: str, stores: QCStores = Depends(get_stores)):
    """Serve objects stored by the local storage provider."""
    storage = stores.records.storage
    if not isinstance(storage, LocalStorageProvider) or not storage.exists(key):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(storage.path_for(key))
