"""
Local filesystem storage provider for development.
Saves files to a local directory instead of Azure Blob Storage.
"""
from pathlib import Path
from typing import BinaryIO, Optional, Union
from urllib.parse import quote

from ..config import settings
from .provider import StorageProvider


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage provider for development."""

    def __init__(self, base_dir: Optional[str] = None, base_url: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.local_storage_dir)
        self.base_url = (base_url or settings.public_base_url).rstrip("/")
        (self.base_dir / "uploads").mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Get the local filesystem path for a given key."""
        clean_key = key.lstrip("/").replace("..", "").replace("\\", "/")
        return self.base_dir / "uploads" / clean_key

    def upload(self, data: Union[bytes, BinaryIO], key: str, content_type: Optional[str] = None) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data if isinstance(data, bytes) else data.read())

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/files/local/{quote(key.lstrip('/'))}"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
