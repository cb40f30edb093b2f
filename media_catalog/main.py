from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .core.config import get_settings
from .core.database import init_db
from .core.errors import register_error_handlers
from .routers import health, movies, upload

settings = get_settings()

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(upload.router, prefix=settings.api_prefix)
app.include_router(movies.router, prefix=settings.api_prefix)

if settings.blob_backend == "local":
    app.mount("/media", StaticFiles(directory=settings.resolved_media_root), name="media")


@app.on_event("startup")
def _prepare_document_tables() -> None:
    if settings.document_backend == "sql":
        init_db()
