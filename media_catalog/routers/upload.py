from fastapi import APIRouter, Depends, File, Query, UploadFile

from ..schemas.movie import UploadResponse
from ..services.catalog import AssetUploader, UploadedFile, get_asset_uploader

router = APIRouter(tags=["upload"])


@router.post("/upload", response_model=UploadResponse)
def upload_asset(
    file_type: str | None = Query(None, alias="fileType"),
    file: UploadFile | None = File(None),
    uploader: AssetUploader = Depends(get_asset_uploader),
):
    uploaded = None
    if file is not None:
        uploaded = UploadedFile(name=file.filename or "", data=file.file.read(), content_type=file.content_type)
    url = uploader.upload(file_type, uploaded)
    return UploadResponse(message="File uploaded successfully.", url=url)
