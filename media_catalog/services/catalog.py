"""Request handlers for the media catalog.

Each handler is stateless apart from the storage collaborators it is built
with, so a single instance can serve every request in the process.
"""

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

from pydantic import ValidationError

from ..core.config import get_settings
from ..core.errors import InvalidArgument, NotFound, describe_validation_errors
from ..schemas.movie import AssetCategory, MovieCreate, MovieRead
from .blob_store import BlobStore, get_blob_store
from .document_store import DocumentStore, get_document_store

logger = logging.getLogger(__name__)

MOVIE_PARTITION_KEY_PATH = "/id"


@dataclass(frozen=True)
class UploadedFile:
    name: str
    data: bytes
    content_type: str | None = None


def parse_category(value: str | None) -> AssetCategory:
    try:
        return AssetCategory(value or "")
    except ValueError:
        allowed = " or ".join(f"'{category.value}'" for category in AssetCategory)
        raise InvalidArgument(f"Invalid fileType. Must be {allowed}.") from None


def parse_movie(payload: MovieCreate | Mapping[str, Any] | None) -> MovieCreate:
    """Validate a create payload in one step, raising ``InvalidArgument`` on any missing or null field."""
    if isinstance(payload, MovieCreate):
        return payload
    if payload is None:
        raise InvalidArgument("Request body is required.")
    try:
        return MovieCreate.model_validate(payload)
    except ValidationError as exc:
        raise InvalidArgument(describe_validation_errors(exc.errors())) from exc


class AssetUploader:
    def __init__(self, blob_store: BlobStore):
        self.blob_store = blob_store

    def upload(self, category: str | AssetCategory | None, file: UploadedFile | None) -> str:
        container = parse_category(category.value if isinstance(category, AssetCategory) else category)
        if file is None or not file.data:
            raise InvalidArgument("No file uploaded.")
        # keep only the base name, whichever separator the client used
        name = PureWindowsPath(PurePosixPath(file.name or "").name).name
        if not name or name in {".", ".."}:
            raise InvalidArgument("Uploaded file has no name.")
        if any(ord(char) < 32 or ord(char) == 127 for char in name):
            raise InvalidArgument("Uploaded file name contains control characters.")

        self.blob_store.ensure_container(container.value)
        url = self.blob_store.put_object(container.value, name, file.data, file.content_type)
        logger.info("Stored %s/%s (%d bytes)", container.value, name, len(file.data))
        return url


class RecordWriter:
    def __init__(self, document_store: DocumentStore, collection: str):
        self.document_store = document_store
        self.collection = collection

    def create(self, payload: MovieCreate | Mapping[str, Any] | None) -> MovieRead:
        movie = parse_movie(payload)
        record = MovieRead(id=str(uuid.uuid4()), **movie.model_dump())

        self.document_store.ensure_collection(self.collection, MOVIE_PARTITION_KEY_PATH)
        self.document_store.insert(self.collection, record.model_dump(by_alias=True))
        logger.info("Created movie %s (%s)", record.id, record.title)
        return record


class RecordReader:
    def __init__(self, document_store: DocumentStore, collection: str):
        self.document_store = document_store
        self.collection = collection

    def get_by_id(self, movie_id: str) -> MovieRead:
        document = self.document_store.get_by_id(self.collection, movie_id, partition_key=movie_id)
        if document is None:
            raise NotFound("Movie not found.")
        return MovieRead.model_validate(document)


class RecordLister:
    def __init__(self, document_store: DocumentStore, collection: str):
        self.document_store = document_store
        self.collection = collection

    def list_all(self) -> list[MovieRead]:
        return [MovieRead.model_validate(document) for document in self.document_store.list_all(self.collection)]


@lru_cache
def get_asset_uploader() -> AssetUploader:
    return AssetUploader(get_blob_store())


@lru_cache
def get_record_writer() -> RecordWriter:
    return RecordWriter(get_document_store(), get_settings().movies_collection)


@lru_cache
def get_record_reader() -> RecordReader:
    return RecordReader(get_document_store(), get_settings().movies_collection)


@lru_cache
def get_record_lister() -> RecordLister:
    return RecordLister(get_document_store(), get_settings().movies_collection)
