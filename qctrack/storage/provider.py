from typing import BinaryIO, Optional, Union


class StorageProvider:
    def upload(self, data: Union[bytes, BinaryIO], key: str, content_type: Optional[str] = None) -> None:
        raise NotImplementedError

    def public_url(self, key: str) -> str:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError
