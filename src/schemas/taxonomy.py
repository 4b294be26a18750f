"""Category and tag schemas."""

from pydantic import BaseModel, ConfigDict, Field


class CategoryResponse(BaseModel):
    """Category response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    icon: str | None
    description: str | None


class CategoryWithCount(CategoryResponse):
    """Category with the number of recipes linked to it."""

    recipe_count: int = 0


class TagCreate(BaseModel):
    """Create a tag (or select the existing one with the same name)."""

    name: str = Field(..., min_length=1, max_length=50)
    color: str | None = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")


class TagResponse(BaseModel):
    """Tag response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    color: str | None
