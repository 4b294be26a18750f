"""Profile schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProfileResponse(BaseModel):
    """Public profile response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str | None
    display_name: str | None
    avatar_url: str | None
    bio: str | None
    created_at: datetime


class OwnProfileResponse(ProfileResponse):
    """Profile of the current user, including the account email."""

    email: str


class ProfileUpdate(BaseModel):
    """Update the current user's profile; blank values clear a field."""

    display_name: str | None = Field(None, max_length=100)
    avatar_url: str | None = None
    bio: str | None = Field(None, max_length=500)

    @field_validator("display_name", "avatar_url", "bio")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class ProfileStats(BaseModel):
    """Counts shown on the profile screen."""

    recipes: int = 0
    bookmarks: int = 0
    likes: int = 0
