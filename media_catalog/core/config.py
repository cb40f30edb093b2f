from functools import lru_cache
from pathlib import Path
import logging

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="APP_")

    app_name: str = "Media Catalog"
    api_prefix: str = "/api"
    allowed_origins: list[str] | str = Field(default_factory=lambda: _DEFAULT_ORIGINS.copy())

    blob_backend: str = "local"
    media_root: Path = Path("./storage")
    media_base_url: str | None = "http://localhost:8000/media"
    azure_storage_connection_string: str | None = None

    document_backend: str = "sql"
    database_url: str = "sqlite:///./media_catalog.db"
    cosmos_endpoint: str | None = None
    cosmos_key: str | None = None
    cosmos_database: str = "media-catalog"
    movies_collection: str = "movies"

    empty_listing_not_found: bool = False

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return _DEFAULT_ORIGINS.copy()
            return [origin.strip() for origin in stripped.split(",") if origin.strip()]
        return value

    @field_validator("blob_backend", "document_backend", mode="before")
    @classmethod
    def _normalise_backend(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_backends(self) -> "Settings":
        if self.blob_backend not in {"local", "azure"}:
            raise ValueError(f"Unsupported blob backend: {self.blob_backend}")
        if self.document_backend not in {"sql", "cosmos"}:
            raise ValueError(f"Unsupported document backend: {self.document_backend}")
        if self.blob_backend == "azure" and not self.azure_storage_connection_string:
            raise ValueError("APP_AZURE_STORAGE_CONNECTION_STRING must be set for the azure blob backend")
        if self.document_backend == "cosmos" and not (self.cosmos_endpoint and self.cosmos_key):
            raise ValueError("APP_COSMOS_ENDPOINT and APP_COSMOS_KEY must be set for the cosmos document backend")
        return self

    @property
    def resolved_media_root(self) -> Path:
        return Path(self.media_root).resolve()


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    if settings.blob_backend == "local":
        settings.resolved_media_root.mkdir(parents=True, exist_ok=True)
    logging.getLogger("uvicorn").info(
        "Storage backends resolved: blob=%s document=%s", settings.blob_backend, settings.document_backend
    )
    return settings
