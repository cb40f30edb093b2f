import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for errors surfaced to API callers as ``{"message": ...}``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageUnavailable(CatalogError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def describe_validation_errors(errors: list[dict]) -> str:
    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return f"Missing or invalid fields: {', '.join(fields)}." if fields else "Invalid request."


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if isinstance(exc, StorageUnavailable):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": describe_validation_errors(errors), "errors": errors},
    )


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(CatalogError, _catalog_error_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)
