"""Public-read file buckets on the local filesystem.

Objects live at ``<storage_root>/<bucket>/<owner_id>/<timestamp>-<random>.<ext>``
and are tracked in ``storage_objects`` so only the uploader may replace or
delete them. Anyone can read them through the public URL.
"""

import logging
import mimetypes
import secrets
import time
from pathlib import Path, PurePosixPath

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.enums import Bucket
from src.models.storage_object import StorageObject
from src.schemas.storage import StoredFileResponse

logger = logging.getLogger(__name__)

settings = get_settings()

ONLY_IMAGES_MESSAGE = "Solo se permiten imagenes"
FILE_TOO_LARGE_MESSAGE = "La imagen no puede superar 5MB"
FILE_EXISTS_MESSAGE = "El archivo ya existe"
FILE_NOT_OWNED_MESSAGE = "No tienes permiso para modificar este archivo"


def public_url(bucket: str, path: str) -> str:
    return f"{settings.storage_public_path.rstrip('/')}/{bucket}/{path}"


class StorageService:
    """Upload, replace, delete, and read files in a bucket."""

    def __init__(self, db: Session, root: str | Path | None = None):
        self.db = db
        self.root = Path(root or settings.storage_root)

    def upload(
        self,
        bucket: Bucket,
        owner_id: int,
        content: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> StoredFileResponse:
        """Store a new image under the owner's folder and return where it is served."""
        content_type = self._validate(content, content_type)
        path = f"{owner_id}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{_extension(filename, content_type)}"

        target = self._file(bucket, path)
        if target.exists() or self._object(bucket, path) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=FILE_EXISTS_MESSAGE)

        obj = StorageObject(
            bucket=bucket.value,
            path=path,
            owner_id=owner_id,
            content_type=content_type,
            size=len(content),
        )
        self.db.add(obj)
        self._write_then_commit(target, content)
        logger.info(f"Stored {bucket.value}/{path} ({len(content)} bytes) for user {owner_id}")
        return self._response(obj)

    def replace(
        self,
        bucket: Bucket,
        path: str,
        owner_id: int,
        content: bytes,
        content_type: str | None,
    ) -> StoredFileResponse:
        """Overwrite an existing file owned by ``owner_id``."""
        obj = self._owned(bucket, path, owner_id)
        content_type = self._validate(content, content_type)

        obj.content_type = content_type
        obj.size = len(content)
        self._write_then_commit(self._file(bucket, path), content)
        return self._response(obj)

    def delete(self, bucket: Bucket, path: str, owner_id: int) -> None:
        obj = self._owned(bucket, path, owner_id)
        self._file(bucket, path).unlink(missing_ok=True)
        self.db.delete(obj)
        self.db.commit()
        logger.info(f"Deleted {bucket.value}/{path}")

    def open(self, bucket: Bucket, path: str) -> tuple[Path, str]:
        """Location and content type of a stored file."""
        obj = self._object(bucket, path)
        target = self._file(bucket, path)
        if obj is None or not target.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
        return target, obj.content_type

    # --- helpers ---

    def _write_then_commit(self, target: Path, content: bytes) -> None:
        """Stage the bytes next to ``target`` and move them into place once the row commits."""
        staged = target.with_name(f".{target.name}.part")
        staged.parent.mkdir(parents=True, exist_ok=True)
        staged.write_bytes(content)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            staged.unlink(missing_ok=True)
            raise
        staged.replace(target)

    @staticmethod
    def _validate(content: bytes, content_type: str | None) -> str:
        if not content_type or not content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=ONLY_IMAGES_MESSAGE
            )
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=FILE_TOO_LARGE_MESSAGE
            )
        return content_type

    def _file(self, bucket: Bucket, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid path")
        return self.root / bucket.value / relative

    def _object(self, bucket: Bucket, path: str) -> StorageObject | None:
        return (
            self.db.query(StorageObject)
            .filter(StorageObject.bucket == bucket.value, StorageObject.path == path)
            .first()
        )

    def _owned(self, bucket: Bucket, path: str, owner_id: int) -> StorageObject:
        obj = self._object(bucket, path)
        if obj is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
        if obj.owner_id != owner_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FILE_NOT_OWNED_MESSAGE)
        return obj

    @staticmethod
    def _response(obj: StorageObject) -> StoredFileResponse:
        return StoredFileResponse(
            bucket=obj.bucket,
            path=obj.path,
            content_type=obj.content_type,
            size=obj.size,
            public_url=public_url(obj.bucket, obj.path),
        )


def _extension(filename: str | None, content_type: str) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].lower()
        if ext.isalnum():
            return ext
    guessed = mimetypes.guess_extension(content_type)
    return guessed.lstrip(".") if guessed else "bin"
