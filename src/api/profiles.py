"""Profile API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, get_recipe_queries
from src.database import get_db
from src.models.user import User
from src.schemas.profile import OwnProfileResponse, ProfileResponse, ProfileStats, ProfileUpdate
from src.services.recipe_queries import RecipeQueries
from src.services.results import unwrap

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


@router.get("/me", response_model=OwnProfileResponse)
async def get_my_profile(
    current_user: Annotated[User, Depends(get_current_user)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Get the current user's profile."""
    return unwrap(await queries.profile())


@router.put("/me", response_model=OwnProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Update display name, avatar, or bio. Omitted fields are left unchanged."""
    profile = current_user.profile
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    db.commit()
    return unwrap(await queries.profile())


@router.get("/me/stats", response_model=ProfileStats)
async def get_my_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Recipe, bookmark, and like counts of the current user."""
    return unwrap(await queries.profile_stats())


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: int,
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Get a user's public profile."""
    return unwrap(await queries.public_profile(profile_id))
