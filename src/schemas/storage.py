"""File storage schemas."""

from pydantic import BaseModel, ConfigDict


class StoredFileResponse(BaseModel):
    """Uploaded file and the URL it is publicly served from."""

    model_config = ConfigDict(from_attributes=True)

    bucket: str
    path: str
    content_type: str
    size: int
    public_url: str
