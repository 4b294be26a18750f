"""File upload endpoints and public file serving."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse

from src.api.dependencies import get_current_user, get_storage_service
from src.config import get_settings
from src.models.enums import Bucket
from src.models.user import User
from src.schemas.storage import StoredFileResponse
from src.services.storage import StorageService

settings = get_settings()

router = APIRouter(prefix="/api/v1/storage", tags=["storage"])

# Mounted at the public storage path so uploaded images can be linked directly.
public_router = APIRouter(tags=["storage"])


async def _read_limited(file: UploadFile) -> bytes:
    # One byte past the limit is enough for the size check to reject it.
    return await file.read(settings.max_upload_bytes + 1)


@router.post("/{bucket}", response_model=StoredFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    bucket: Bucket,
    file: Annotated[UploadFile, File()],
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
):
    """Upload an image into the current user's folder of a bucket."""
    content = await _read_limited(file)
    return storage.upload(bucket, current_user.id, content, file.content_type, file.filename)


@router.put("/{bucket}/{path:path}", response_model=StoredFileResponse)
async def replace_file(
    bucket: Bucket,
    path: str,
    file: Annotated[UploadFile, File()],
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
):
    """Overwrite a file the current user uploaded."""
    content = await _read_limited(file)
    return storage.replace(bucket, path, current_user.id, content, file.content_type)


@router.delete("/{bucket}/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    bucket: Bucket,
    path: str,
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
):
    """Delete a file the current user uploaded."""
    storage.delete(bucket, path, current_user.id)


@public_router.get(settings.storage_public_path.rstrip("/") + "/{bucket}/{path:path}")
async def serve_file(
    bucket: Bucket,
    path: str,
    storage: Annotated[StorageService, Depends(get_storage_service)],
):
    """Serve a stored file to anyone."""
    location, content_type = storage.open(bucket, path)
    return FileResponse(location, media_type=content_type)
