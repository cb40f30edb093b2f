import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

_SCRATCH = Path(tempfile.mkdtemp(prefix="media-catalog-test-"))
os.environ.setdefault("APP_MEDIA_ROOT", str(_SCRATCH / "storage"))
os.environ.setdefault("APP_DATABASE_URL", f"sqlite:///{_SCRATCH / 'catalog.db'}")
os.environ.setdefault("APP_BLOB_BACKEND", "local")
os.environ.setdefault("APP_DOCUMENT_BACKEND", "sql")

from media_catalog.core.config import Settings, get_settings  # noqa: E402
from media_catalog.core.database import build_engine, init_db  # noqa: E402
from media_catalog.main import app  # noqa: E402
from media_catalog.services.blob_store import LocalBlobStore  # noqa: E402
from media_catalog.services.catalog import (  # noqa: E402
    AssetUploader,
    RecordLister,
    RecordReader,
    RecordWriter,
    get_asset_uploader,
    get_record_lister,
    get_record_reader,
    get_record_writer,
)
from media_catalog.services.document_store import SqlDocumentStore  # noqa: E402

COLLECTION = "movies"


@pytest.fixture
def document_store(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'documents.db'}")
    init_db(engine)
    yield SqlDocumentStore(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))
    engine.dispose()


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "blobs", "http://testserver/media")


@pytest.fixture
def settings():
    return Settings(empty_listing_not_found=False)


@pytest.fixture
def client(document_store, blob_store, settings):
    app.dependency_overrides[get_asset_uploader] = lambda: AssetUploader(blob_store)
    app.dependency_overrides[get_record_writer] = lambda: RecordWriter(document_store, COLLECTION)
    app.dependency_overrides[get_record_reader] = lambda: RecordReader(document_store, COLLECTION)
    app.dependency_overrides[get_record_lister] = lambda: RecordLister(document_store, COLLECTION)
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def movie_payload():
    return {
        "title": "Night Train",
        "year": 2024,
        "videoUrl": "http://testserver/media/videos/night-train.mp4",
        "thumbnailUrl": "http://testserver/media/images/night-train.jpg",
    }
