"""Recipe import schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from src.models.enums import Difficulty
from src.schemas.recipe import IngredientInput, InstructionInput


class RecipeImportCreate(BaseModel):
    """Request to import a recipe from a web page."""

    url: HttpUrl


class ParsedIngredient(BaseModel):
    """Ingredient line split into quantity, unit, and name."""

    name: str = Field(..., max_length=100)
    quantity: str | None = Field(None, max_length=50)
    unit: str | None = Field(None, max_length=50)


class ParsedRecipe(BaseModel):
    """Recipe structure extracted from schema.org markup."""

    title: str = Field(..., max_length=255)
    description: str | None = None
    image_url: str | None = None
    prep_time: int | None = None
    cooking_time: int | None = None
    servings: int | None = None
    ingredients: list[ParsedIngredient]
    instructions: list[str]


class RecipeImportResponse(BaseModel):
    """Response for recipe import status."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    source_url: str
    status: str  # pending, processing, completed, failed
    parsed_recipe: ParsedRecipe | None = None
    error_message: str | None = None
    processed_at: datetime | None = None
    recipe_id: int | None = None
    created_at: datetime


class RecipeImportConfirm(BaseModel):
    """Request to confirm and save a parsed recipe."""

    # Optional edits before saving
    title: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)
    servings: int | None = Field(None, ge=1, le=50)
    difficulty: Difficulty | None = None
    ingredients: list[IngredientInput] | None = None
    instructions: list[InstructionInput] | None = None
    category_ids: list[int] = []
    tag_ids: list[int] = []
    is_public: bool = True
