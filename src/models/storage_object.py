"""StorageObject model tracking ownership of uploaded files."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from src.database import Base
from src.models.mixins import TimestampMixin


class StorageObject(Base, TimestampMixin):
    """File stored in a public-read bucket."""

    __tablename__ = "storage_objects"
    __table_args__ = (UniqueConstraint("bucket", "path", name="uq_storage_objects_bucket_path"),)

    id = Column(Integer, primary_key=True, index=True)
    bucket = Column(String(50), nullable=False)
    path = Column(String(255), nullable=False)
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
