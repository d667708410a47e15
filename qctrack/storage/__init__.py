import os
from datetime import datetime
from typing import Optional

from slugify import slugify

from ..config import settings
from ..schemas.base import new_id
from .blob_provider import BlobStorageProvider
from .local_provider import LocalStorageProvider
from .provider import StorageProvider


def get_storage() -> StorageProvider:
    """Get storage provider based on configuration"""
    if settings.storage_provider == "blob" and settings.azure_blob_connection and settings.azure_blob_container:
        return BlobStorageProvider()
    return LocalStorageProvider()


def canonical_key(job_number: Optional[str], category: Optional[str], original_name: str) -> str:
    today = datetime.utcnow().strftime("%Y-%m-%d")
    year = datetime.utcnow().strftime("%Y")
    safe_name = slugify(os.path.splitext(original_name)[0]) or "upload"
    ext = os.path.splitext(original_name)[1].lower()
    job = slugify(job_number or "misc")
    folder = slugify(category or "photos")
    # Random suffix keeps same-name uploads on the same day apart
    return f"/qc/{year}/{job}/{folder}/{today}_{safe_name}-{new_id()[:8]}{ext}"
