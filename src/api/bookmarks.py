"""Bookmark listing endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_user, get_recipe_queries
from src.models.user import User
from src.schemas.recipe import RecipeSummary
from src.services.recipe_queries import RecipeQueries
from src.services.results import unwrap

router = APIRouter(prefix="/api/v1/bookmarks", tags=["bookmarks"])


@router.get("", response_model=list[RecipeSummary])
async def list_bookmarks(
    current_user: Annotated[User, Depends(get_current_user)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Recipes saved by the current user, most recently saved first."""
    return unwrap(await queries.bookmarked_recipes())
