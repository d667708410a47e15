from typing import BinaryIO, Optional, Union

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from ..config import settings
from .provider import StorageProvider


class BlobStorageProvider(StorageProvider):
    def __init__(self, connection: Optional[str] = None, container: Optional[str] = None) -> None:
        connection = connection or settings.azure_blob_connection
        container = container or settings.azure_blob_container
        if not connection or not container:
            raise RuntimeError("AZURE_BLOB_CONNECTION and AZURE_BLOB_CONTAINER must be set")
        self._service = BlobServiceClient.from_connection_string(connection)
        self._container = container

    def upload(self, data: Union[bytes, BinaryIO], key: str, content_type: Optional[str] = None) -> None:
        client = self._service.get_blob_client(self._container, key.lstrip("/"))
        client.upload_blob(
            data,
            overwrite=False,
            content_settings=ContentSettings(content_type=content_type, cache_control="max-age=3600"),
        )

    def public_url(self, key: str) -> str:
        return self._service.get_blob_client(self._container, key.lstrip("/")).url

    def exists(self, key: str) -> bool:
        client = self._service.get_blob_client(self._container, key.lstrip("/"))
        return client.exists()

    def delete(self, key: str) -> None:
        client = self._service.get_blob_client(self._container, key.lstrip("/"))
        try:
            client.delete_blob()
        except ResourceNotFoundError:
            pass
