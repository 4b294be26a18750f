"""Recipe API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from src.api.dependencies import (
    get_current_user,
    get_engagement_service,
    get_recipe_queries,
    get_recipe_writer,
)
from src.database import get_db
from src.models.enums import ImportStatus
from src.models.recipe import Recipe
from src.models.recipe_import import RecipeImport
from src.models.user import User
from src.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from src.schemas.recipe import (
    BookmarkStatus,
    LikeStatus,
    RecipeCreated,
    RecipeDetail,
    RecipeFormData,
    RecipePage,
    RecipePayload,
    RecipeSummary,
    SearchFilters,
)
from src.schemas.recipe_import import (
    ParsedRecipe,
    RecipeImportConfirm,
    RecipeImportCreate,
    RecipeImportResponse,
)
from src.services.engagement import EngagementService
from src.services.recipe_import import build_payload, source_host
from src.services.recipe_queries import RecipeQueries
from src.services.recipe_writer import RecipeWriter
from src.services.results import unwrap

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


@router.get("", response_model=RecipePage)
async def list_recipes(
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
    category: str | None = None,
    page: int = 1,
):
    """Public recipes, newest first, optionally filtered by category slug."""
    return unwrap(await queries.recipes_page(category, page))


@router.get("/search", response_model=RecipePage)
async def search_recipes(
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
    q: str | None = None,
    category: str | None = None,
    tag: str | None = None,
    difficulty: str | None = None,
    time: Annotated[int | None, Query(ge=0)] = None,
    page: int = 1,
):
    """Search public recipes by text, category, tag, difficulty, and cooking time."""
    filters = SearchFilters(
        q=q, category=category, tag=tag, difficulty=difficulty, time=time, page=page
    )
    return unwrap(await queries.search(filters))


@router.get("/mine", response_model=list[RecipeSummary])
async def list_my_recipes(
    current_user: Annotated[User, Depends(get_current_user)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """All recipes of the current user, public or not."""
    return unwrap(await queries.my_recipes())


@router.post("", response_model=RecipeCreated, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    payload: RecipePayload,
    current_user: Annotated[User, Depends(get_current_user)],
    writer: Annotated[RecipeWriter, Depends(get_recipe_writer)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create a recipe with its ingredients, steps, categories, and tags."""
    recipe_id = writer.create_recipe_atomic(current_user.id, payload)
    return RecipeCreated(id=recipe_id, slug=db.get(Recipe, recipe_id).slug)


# --- Recipe Import endpoints ---


def get_user_import(db: Session, import_id: int, user: User) -> RecipeImport:
    """Get an import that belongs to the user."""
    recipe_import = (
        db.query(RecipeImport)
        .filter(
            RecipeImport.id == import_id,
            RecipeImport.user_id == user.id,
        )
        .first()
    )
    if not recipe_import:
        raise HTTPException(status_code=404, detail="Import not found")
    return recipe_import


@router.post("/import", response_model=RecipeImportResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_recipe_import(
    data: RecipeImportCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Queue a web page for recipe extraction."""
    recipe_import = RecipeImport(
        user_id=current_user.id,
        source_url=str(data.url),
        status=ImportStatus.PENDING.value,
    )
    db.add(recipe_import)
    db.commit()
    db.refresh(recipe_import)

    # Trigger async processing
    from src.tasks.recipe_import import process_recipe_import

    process_recipe_import.delay(recipe_import.id)

    return recipe_import


@router.get("/import/{import_id}", response_model=RecipeImportResponse)
async def get_recipe_import(
    import_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get import status and parsed recipe."""
    return get_user_import(db, import_id, current_user)


@router.post(
    "/import/{import_id}/confirm",
    response_model=RecipeCreated,
    status_code=status.HTTP_201_CREATED,
)
async def confirm_recipe_import(
    import_id: int,
    data: RecipeImportConfirm,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    writer: Annotated[RecipeWriter, Depends(get_recipe_writer)],
):
    """Create a recipe from a parsed import with optional edits."""
    recipe_import = get_user_import(db, import_id, current_user)
    if not recipe_import.is_ready:
        raise HTTPException(status_code=404, detail="Completed import not found")
    if recipe_import.is_confirmed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Esta receta ya fue importada"
        )

    parsed = ParsedRecipe.model_validate(recipe_import.parsed_recipe)
    recipe_id = writer.create_recipe_atomic(
        current_user.id,
        build_payload(parsed, data),
        source_url=recipe_import.source_url,
        imported_from=source_host(recipe_import.source_url),
    )

    recipe_import.recipe_id = recipe_id
    db.commit()

    return RecipeCreated(id=recipe_id, slug=recipe_import.recipe.slug)


@router.delete("/import/{import_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe_import(
    import_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Discard an import."""
    recipe_import = get_user_import(db, import_id, current_user)
    db.delete(recipe_import)
    db.commit()


# --- Note routes (before /{recipe_id}) ---


@router.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: int,
    data: NoteUpdate,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    """Edit one of the current user's notes."""
    return engagement.update_note(note_id, data)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: int,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    """Delete one of the current user's notes."""
    engagement.delete_note(note_id)


# --- Single recipe ---


@router.get("/{recipe_id}", response_model=RecipeDetail)
async def get_recipe(
    recipe_id: int,
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
    servings: Annotated[
        int | None, Query(description="Scale quantities to this many portions (1-100)")
    ] = None,
):
    """Get a recipe with author, ingredients, steps, and taxonomy."""
    return unwrap(await queries.recipe_detail(recipe_id, servings))


@router.get("/{recipe_id}/form", response_model=RecipeFormData)
async def get_recipe_form(
    recipe_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Current contents of an owned recipe, for editing."""
    return unwrap(await queries.recipe_form(recipe_id))


@router.put("/{recipe_id}", response_model=RecipeDetail)
async def update_recipe(
    recipe_id: int,
    payload: RecipePayload,
    current_user: Annotated[User, Depends(get_current_user)],
    writer: Annotated[RecipeWriter, Depends(get_recipe_writer)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Replace a recipe's contents in one transaction."""
    writer.update_recipe_atomic(recipe_id, current_user.id, payload)
    return unwrap(await queries.recipe_detail(recipe_id))


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    writer: Annotated[RecipeWriter, Depends(get_recipe_writer)],
):
    """Delete a recipe with its ingredients, steps, likes, bookmarks, and notes."""
    writer.delete_recipe(recipe_id, current_user.id)


# --- Likes ---


@router.get("/{recipe_id}/like", response_model=LikeStatus)
async def get_like(
    recipe_id: int,
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Like count, and whether the viewer liked the recipe."""
    return unwrap(await queries.like_summary(recipe_id))


@router.post("/{recipe_id}/like", response_model=LikeStatus)
async def like_recipe(
    recipe_id: int,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    return engagement.like(recipe_id)


@router.delete("/{recipe_id}/like", response_model=LikeStatus)
async def unlike_recipe(
    recipe_id: int,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    return engagement.unlike(recipe_id)


# --- Bookmarks ---


@router.get("/{recipe_id}/bookmark", response_model=BookmarkStatus)
async def get_bookmark(
    recipe_id: int,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    return engagement.bookmark_status(recipe_id)


@router.post("/{recipe_id}/bookmark", response_model=BookmarkStatus)
async def bookmark_recipe(
    recipe_id: int,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    return engagement.bookmark(recipe_id)


@router.delete("/{recipe_id}/bookmark", response_model=BookmarkStatus)
async def unbookmark_recipe(
    recipe_id: int,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    return engagement.unbookmark(recipe_id)


# --- Notes ---


@router.get("/{recipe_id}/notes", response_model=list[NoteResponse])
async def list_notes(
    recipe_id: int,
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """The viewer's own note plus notes other users chose to share."""
    return unwrap(await queries.notes(recipe_id))


@router.post(
    "/{recipe_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED
)
async def create_note(
    recipe_id: int,
    data: NoteCreate,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    """Attach the current user's note to a recipe."""
    return engagement.create_note(recipe_id, data)
