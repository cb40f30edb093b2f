from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ServiceRequestError
from azure.cosmos import exceptions as cosmos_exceptions

from media_catalog.core.config import Settings
from media_catalog.core.errors import InvalidArgument, StorageUnavailable
from media_catalog.services import document_store as document_store_module
from media_catalog.services.document_store import CosmosDocumentStore, create_document_store


def _doc(doc_id, **fields):
    return {"id": doc_id, "title": "T", **fields}


def test_sql_insert_and_point_read(document_store):
    document_store.ensure_collection("movies", "/id")
    document_store.insert("movies", _doc("m1"))

    assert document_store.get_by_id("movies", "m1", partition_key="m1") == _doc("m1")
    assert document_store.get_by_id("movies", "m1", partition_key="other") is None
    assert document_store.get_by_id("movies", "m2", partition_key="m2") is None


def test_sql_collections_are_isolated(document_store):
    document_store.ensure_collection("movies")
    document_store.ensure_collection("shorts")
    document_store.insert("movies", _doc("m1"))

    assert document_store.list_all("shorts") == []
    assert document_store.list_all("movies") == [_doc("m1")]


def test_sql_ensure_collection_is_idempotent(document_store):
    document_store.ensure_collection("movies")
    document_store.ensure_collection("movies")
    document_store.insert("movies", _doc("m1"))
    assert len(document_store.list_all("movies")) == 1


def test_sql_insert_requires_existing_collection(document_store):
    with pytest.raises(StorageUnavailable):
        document_store.insert("missing", _doc("m1"))


def test_sql_insert_requires_partition_key(document_store):
    document_store.ensure_collection("by_title", "/title")
    with pytest.raises(InvalidArgument):
        document_store.insert("by_title", {"id": "m1"})


def test_sql_duplicate_id_is_rejected(document_store):
    document_store.ensure_collection("movies")
    document_store.insert("movies", _doc("m1"))
    with pytest.raises(InvalidArgument):
        document_store.insert("movies", _doc("m1"))


@pytest.fixture
def cosmos():
    client = MagicMock()
    store = CosmosDocumentStore(client, "media-catalog")
    container = client.create_database_if_not_exists.return_value.get_container_client.return_value
    return store, client, container


def test_cosmos_ensure_collection_uses_partition_key(cosmos):
    store, client, _ = cosmos
    store.ensure_collection("movies", "/id")

    database = client.create_database_if_not_exists.return_value
    client.create_database_if_not_exists.assert_called_once_with(id="media-catalog")
    _, kwargs = database.create_container_if_not_exists.call_args
    assert kwargs["id"] == "movies"
    assert kwargs["partition_key"]["paths"] == ["/id"]


def test_cosmos_point_read_strips_system_properties(cosmos):
    store, _, container = cosmos
    container.read_item.return_value = {**_doc("m1"), "_rid": "x", "_etag": "y", "_ts": 1}

    assert store.get_by_id("movies", "m1", partition_key="m1") == _doc("m1")
    container.read_item.assert_called_once_with(item="m1", partition_key="m1")


def test_cosmos_missing_item(cosmos):
    store, _, container = cosmos
    container.read_item.side_effect = cosmos_exceptions.CosmosResourceNotFoundError(status_code=404, message="gone")
    assert store.get_by_id("movies", "m1", partition_key="m1") is None


def test_cosmos_list_missing_container(cosmos):
    store, _, container = cosmos
    container.read_all_items.side_effect = cosmos_exceptions.CosmosResourceNotFoundError(status_code=404, message="gone")
    assert store.list_all("movies") == []


def test_cosmos_insert_failure(cosmos):
    store, _, container = cosmos
    container.create_item.side_effect = cosmos_exceptions.CosmosHttpResponseError(status_code=503, message="busy")
    with pytest.raises(StorageUnavailable):
        store.insert("movies", _doc("m1"))


def test_cosmos_unreachable_account(monkeypatch):
    client_class = MagicMock(side_effect=ServiceRequestError(message="Connection refused"))
    monkeypatch.setattr(document_store_module, "CosmosClient", client_class)
    settings = Settings(document_backend="cosmos", cosmos_endpoint="https://127.0.0.1:1/", cosmos_key="a2V5")

    with pytest.raises(StorageUnavailable):
        create_document_store(settings)

    client_class.assert_called_once_with("https://127.0.0.1:1/", "a2V5")
