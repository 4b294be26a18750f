"""Recipe schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.enums import Difficulty
from src.schemas.taxonomy import CategoryResponse, TagResponse
from src.services.text import normalize_ingredient_name

# --- Write payloads ---


def _strip(value):
    # Applied before the length constraints.
    return value.strip() if isinstance(value, str) else value


class IngredientInput(BaseModel):
    """Ingredient line as sent to the atomic recipe writer."""

    name: str = Field(..., min_length=2, max_length=100)
    quantity: str | None = Field(None, max_length=50)
    unit: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=500)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)

    @field_validator("quantity", "unit", "notes")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class InstructionInput(BaseModel):
    """Preparation step; its position in the list decides the step number."""

    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, value):
        return _strip(value)


class RecipePayload(BaseModel):
    """Full recipe contents written in one transaction."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str | None = Field(None, max_length=500)
    image_url: str | None = None
    prep_time: int | None = Field(None, ge=0, le=10000)
    cooking_time: int | None = Field(None, ge=0, le=10000)
    servings: int = Field(4, ge=1, le=50)
    difficulty: Difficulty = Difficulty.MEDIUM
    is_public: bool = True
    ingredients: list[IngredientInput] = Field(..., min_length=1)
    instructions: list[InstructionInput] = Field(..., min_length=1)
    category_ids: list[int] = []
    tag_ids: list[int] = []

    @field_validator("instructions", mode="before")
    @classmethod
    def accept_plain_steps(cls, value):
        if isinstance(value, list):
            return [{"content": v} if isinstance(v, str) else v for v in value]
        return value

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, value):
        return _strip(value)

    @field_validator("description", "image_url")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def reject_repeated_ingredients(self) -> "RecipePayload":
        seen = set()
        for ingredient in self.ingredients:
            key = normalize_ingredient_name(ingredient.name)
            if key in seen:
                raise ValueError(f"Ingrediente repetido: {ingredient.name}")
            seen.add(key)
        return self


# --- Form input (validated before anything is sent) ---

CUSTOM_UNIT = "otro"


class IngredientFormRow(BaseModel):
    name: str = ""
    quantity: str = ""
    unit: str = ""
    custom_unit: str = ""


class InstructionFormRow(BaseModel):
    content: str = ""


class RecipeFormValidationError(ValueError):
    """Raised when a recipe form cannot be turned into a payload."""


class RecipeForm(BaseModel):
    """Raw recipe form values, as typed by the user.

    Empty ingredient and instruction rows are dropped before validation.
    """

    title: str = ""
    description: str = ""
    image_url: str = ""
    prep_time: str = ""
    cooking_time: str = ""
    servings: int = 4
    difficulty: Difficulty | None = None
    is_public: bool = True
    ingredients: list[IngredientFormRow] = [IngredientFormRow()]
    instructions: list[InstructionFormRow] = [InstructionFormRow()]
    category_ids: list[int] = []
    tag_ids: list[int] = []

    def to_payload(self) -> RecipePayload:
        ingredients = [row for row in self.ingredients if row.name.strip()]
        instructions = [row for row in self.instructions if row.content.strip()]

        if not ingredients:
            raise RecipeFormValidationError("Agrega al menos un ingrediente con nombre")
        if not instructions:
            raise RecipeFormValidationError("Agrega al menos un paso con contenido")

        for row in instructions:
            if len(row.content.strip()) < 10:
                raise RecipeFormValidationError("Cada paso necesita minimo 10 caracteres")

        return RecipePayload(
            title=self.title,
            description=self.description or None,
            image_url=self.image_url or None,
            prep_time=_parse_minutes(self.prep_time),
            cooking_time=_parse_minutes(self.cooking_time),
            servings=self.servings or 4,
            difficulty=self.difficulty or Difficulty.MEDIUM,
            is_public=self.is_public,
            ingredients=[
                IngredientInput(
                    name=row.name.strip().lower(),
                    quantity=row.quantity or None,
                    unit=(row.custom_unit if row.unit == CUSTOM_UNIT else row.unit) or None,
                )
                for row in ingredients
            ],
            instructions=[InstructionInput(content=row.content) for row in instructions],
            category_ids=self.category_ids,
            tag_ids=self.tag_ids,
        )


def _parse_minutes(value: str) -> int | None:
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise RecipeFormValidationError("El tiempo debe ser un numero de minutos") from e


# --- Responses ---


class RecipeCreated(BaseModel):
    id: int
    slug: str


class AuthorInfo(BaseModel):
    id: int
    name: str
    avatar_url: str | None = None


class IngredientLine(BaseModel):
    """Recipe ingredient response."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    quantity: str | None
    unit: str | None
    notes: str | None
    order_index: int


class InstructionStep(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    step_number: int
    content: str
    image_url: str | None = None


class RecipeSummary(BaseModel):
    """Recipe card (without ingredients or steps)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    slug: str
    description: str | None
    image_url: str | None
    prep_time: int | None
    cooking_time: int | None
    servings: int | None
    difficulty: Difficulty | None
    is_public: bool
    created_at: datetime
    author_name: str | None = None
    likes_count: int = 0
    tags: list[TagResponse] = []


class RecipeDetail(RecipeSummary):
    """Recipe with author, ordered ingredients, steps, and taxonomy."""

    source_url: str | None
    is_imported: bool
    imported_from: str | None
    updated_at: datetime
    author: AuthorInfo
    ingredients: list[IngredientLine]
    # Portions the ingredient quantities were scaled to, when requested
    scaled_servings: int | None = None
    instructions: list[InstructionStep]
    categories: list[CategoryResponse]


class RecipePage(BaseModel):
    """One page of recipe cards."""

    recipes: list[RecipeSummary]
    total_count: int
    total_pages: int
    current_page: int


class SearchFilters(BaseModel):
    """Search query parameters; "all" disables a filter."""

    q: str | None = None
    category: str | None = None
    tag: str | None = None
    difficulty: str | None = None
    time: int | None = Field(None, ge=0)
    page: int = 1


class RecipeFormData(RecipePayload):
    """Existing recipe contents for the edit form."""

    id: int


class LikeStatus(BaseModel):
    recipe_id: int
    liked: bool
    likes_count: int


class BookmarkStatus(BaseModel):
    recipe_id: int
    bookmarked: bool


class ViewerState(BaseModel):
    """Whether the current viewer has liked or bookmarked a recipe."""

    liked: bool = False
    bookmarked: bool = False
