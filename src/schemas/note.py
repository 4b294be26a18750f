"""Recipe note schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NoteCreate(BaseModel):
    """Attach a note to a recipe."""

    content: str = Field(..., min_length=1, max_length=2000)
    is_private: bool = True

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("La nota no puede estar vacia")
        return value


class NoteUpdate(BaseModel):
    """Edit a note."""

    content: str | None = Field(None, min_length=1, max_length=2000)
    is_private: bool | None = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("La nota no puede estar vacia")
        return value


class NoteResponse(BaseModel):
    """Recipe note response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    recipe_id: int
    content: str
    is_private: bool
    created_at: datetime
    updated_at: datetime
