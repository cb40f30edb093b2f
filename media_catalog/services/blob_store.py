import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContentSettings

from ..core.config import Settings, get_settings
from ..core.errors import InvalidArgument, StorageUnavailable

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Object storage addressed by container + name."""

    def ensure_container(self, name: str) -> None: ...

    def put_object(self, container: str, name: str, data: bytes, content_type: str | None = None) -> str:
        """Store ``data`` under ``container/name``, replacing any existing object, and return its URL."""
        ...


class LocalBlobStore:
    """Blob store backed by a directory tree: one sub-directory per container."""

    def __init__(self, base_path: Path, base_url: str | None = None):
        self.base_path = Path(base_path).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, *parts: str) -> Path:
        try:
            target = self.base_path.joinpath(*parts).resolve()
        except (OSError, ValueError):
            raise InvalidArgument(f"Invalid object path: {'/'.join(parts)!r}") from None
        if target == self.base_path or not target.is_relative_to(self.base_path):
            raise InvalidArgument(f"Unsafe object path: {'/'.join(parts)}")
        return target

    def ensure_container(self, name: str) -> None:
        try:
            self._resolve(name).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Could not create container %s", name)
            raise StorageUnavailable(f"Could not create container '{name}'.") from exc

    def put_object(self, container: str, name: str, data: bytes, content_type: str | None = None) -> str:
        dest_path = self._resolve(container, name)
        temp_path = dest_path.with_name(f".{dest_path.name}.tmp-{uuid.uuid4().hex}")
        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_bytes(data)
            temp_path.replace(dest_path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            logger.exception("Could not write %s/%s", container, name)
            raise StorageUnavailable(f"Could not store '{name}'.") from exc
        return self.url_for(container, name)

    def url_for(self, container: str, name: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{quote(container)}/{quote(name)}"
        return self._resolve(container, name).as_uri()


class AzureBlobStore:
    def __init__(self, service_client: BlobServiceClient):
        self.service_client = service_client

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "AzureBlobStore":
        return cls(BlobServiceClient.from_connection_string(connection_string))

    def ensure_container(self, name: str) -> None:
        try:
            self.service_client.create_container(name)
        except ResourceExistsError:
            pass
        except AzureError as exc:
            logger.exception("Could not create container %s", name)
            raise StorageUnavailable(f"Could not create container '{name}'.") from exc

    def put_object(self, container: str, name: str, data: bytes, content_type: str | None = None) -> str:
        blob_client = self.service_client.get_blob_client(container=container, blob=name)
        content_settings = ContentSettings(content_type=content_type) if content_type else None
        try:
            blob_client.upload_blob(data, overwrite=True, content_settings=content_settings)
        except AzureError as exc:
            logger.exception("Could not upload %s/%s", container, name)
            raise StorageUnavailable(f"Could not store '{name}'.") from exc
        return blob_client.url


def create_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_backend == "azure":
        return AzureBlobStore.from_connection_string(settings.azure_storage_connection_string)
    return LocalBlobStore(settings.resolved_media_root, settings.media_base_url)


@lru_cache
def get_blob_store() -> BlobStore:
    return create_blob_store(get_settings())
