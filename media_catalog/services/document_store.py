import logging
from functools import lru_cache
from typing import Any, Protocol

from azure.core.exceptions import AzureError
from azure.cosmos import CosmosClient, PartitionKey, exceptions as cosmos_exceptions
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.config import Settings, get_settings
from ..core.database import get_session_factory
from ..core.errors import InvalidArgument, StorageUnavailable
from ..models.document import DocumentCollection, StoredDocument

logger = logging.getLogger(__name__)

Document = dict[str, Any]

_COSMOS_SYSTEM_PROPERTIES = ("_rid", "_self", "_etag", "_attachments", "_ts")


class DocumentStore(Protocol):
    """JSON document collections addressed by id and partition key."""

    def ensure_collection(self, name: str, partition_key_path: str = "/id") -> None: ...

    def insert(self, collection: str, document: Document) -> Document: ...

    def get_by_id(self, collection: str, document_id: str, partition_key: str) -> Document | None: ...

    def list_all(self, collection: str) -> list[Document]: ...


def _partition_value(document: Document, partition_key_path: str) -> str:
    value: Any = document
    for part in partition_key_path.strip("/").split("/"):
        if not isinstance(value, dict) or value.get(part) is None:
            raise InvalidArgument(f"Document is missing partition key '{partition_key_path}'.")
        value = value[part]
    return str(value)


class SqlDocumentStore:
    """Document store on top of two SQLAlchemy tables (``collections`` and ``documents``)."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def ensure_collection(self, name: str, partition_key_path: str = "/id") -> None:
        try:
            with self.session_factory() as db:
                if db.get(DocumentCollection, name) is not None:
                    return
                db.add(DocumentCollection(name=name, partition_key_path=partition_key_path))
                try:
                    db.commit()
                except IntegrityError:
                    # created concurrently
                    db.rollback()
        except SQLAlchemyError as exc:
            logger.exception("Could not create collection %s", name)
            raise StorageUnavailable(f"Could not create collection '{name}'.") from exc

    def insert(self, collection: str, document: Document) -> Document:
        if not document.get("id"):
            raise InvalidArgument("Document is missing 'id'.")
        try:
            with self.session_factory() as db:
                owner = db.get(DocumentCollection, collection)
                if owner is None:
                    raise StorageUnavailable(f"Collection '{collection}' does not exist.")
                db.add(
                    StoredDocument(
                        collection=collection,
                        id=str(document["id"]),
                        partition_key=_partition_value(document, owner.partition_key_path),
                        body=document,
                    )
                )
                db.commit()
        except IntegrityError as exc:
            raise InvalidArgument(f"Document '{document['id']}' already exists.") from exc
        except SQLAlchemyError as exc:
            logger.exception("Could not insert into %s", collection)
            raise StorageUnavailable(f"Could not write to collection '{collection}'.") from exc
        return dict(document)

    def get_by_id(self, collection: str, document_id: str, partition_key: str) -> Document | None:
        try:
            with self.session_factory() as db:
                stored = db.get(StoredDocument, (collection, document_id))
        except SQLAlchemyError as exc:
            logger.exception("Could not read %s/%s", collection, document_id)
            raise StorageUnavailable(f"Could not read from collection '{collection}'.") from exc
        if stored is None or stored.partition_key != partition_key:
            return None
        return dict(stored.body)

    def list_all(self, collection: str) -> list[Document]:
        try:
            with self.session_factory() as db:
                rows = db.scalars(select(StoredDocument.body).where(StoredDocument.collection == collection)).all()
        except SQLAlchemyError as exc:
            logger.exception("Could not scan %s", collection)
            raise StorageUnavailable(f"Could not read from collection '{collection}'.") from exc
        return [dict(body) for body in rows]


class CosmosDocumentStore:
    def __init__(self, client: CosmosClient, database_name: str):
        self.client = client
        self.database_name = database_name
        self._database = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CosmosDocumentStore":
        try:
            client = CosmosClient(settings.cosmos_endpoint, settings.cosmos_key)
        except AzureError as exc:
            logger.exception("Could not connect to Cosmos account %s", settings.cosmos_endpoint)
            raise StorageUnavailable("Document store is unavailable.") from exc
        return cls(client, settings.cosmos_database)

    @property
    def database(self):
        if self._database is None:
            try:
                self._database = self.client.create_database_if_not_exists(id=self.database_name)
            except AzureError as exc:
                logger.exception("Could not open Cosmos database %s", self.database_name)
                raise StorageUnavailable("Document store is unavailable.") from exc
        return self._database

    @staticmethod
    def _strip(document: Document) -> Document:
        return {key: value for key, value in document.items() if key not in _COSMOS_SYSTEM_PROPERTIES}

    def ensure_collection(self, name: str, partition_key_path: str = "/id") -> None:
        try:
            self.database.create_container_if_not_exists(id=name, partition_key=PartitionKey(path=partition_key_path))
        except AzureError as exc:
            logger.exception("Could not create container %s", name)
            raise StorageUnavailable(f"Could not create collection '{name}'.") from exc

    def insert(self, collection: str, document: Document) -> Document:
        try:
            created = self.database.get_container_client(collection).create_item(body=document)
        except cosmos_exceptions.CosmosResourceExistsError as exc:
            raise InvalidArgument(f"Document '{document.get('id')}' already exists.") from exc
        except AzureError as exc:
            logger.exception("Could not insert into %s", collection)
            raise StorageUnavailable(f"Could not write to collection '{collection}'.") from exc
        return self._strip(created)

    def get_by_id(self, collection: str, document_id: str, partition_key: str) -> Document | None:
        try:
            item = self.database.get_container_client(collection).read_item(item=document_id, partition_key=partition_key)
        except cosmos_exceptions.CosmosResourceNotFoundError:
            return None
        except AzureError as exc:
            logger.exception("Could not read %s/%s", collection, document_id)
            raise StorageUnavailable(f"Could not read from collection '{collection}'.") from exc
        return self._strip(item)

    def list_all(self, collection: str) -> list[Document]:
        try:
            items = list(self.database.get_container_client(collection).read_all_items())
        except cosmos_exceptions.CosmosResourceNotFoundError:
            return []
        except AzureError as exc:
            logger.exception("Could not scan %s", collection)
            raise StorageUnavailable(f"Could not read from collection '{collection}'.") from exc
        return [self._strip(item) for item in items]


def create_document_store(settings: Settings) -> DocumentStore:
    if settings.document_backend == "cosmos":
        return CosmosDocumentStore.from_settings(settings)
    return SqlDocumentStore(get_session_factory())


@lru_cache
def get_document_store() -> DocumentStore:
    return create_document_store(get_settings())
