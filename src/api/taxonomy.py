"""Category and tag API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import get_engagement_service, get_recipe_queries
from src.schemas.taxonomy import CategoryWithCount, TagCreate, TagResponse
from src.services.engagement import EngagementService
from src.services.recipe_queries import RecipeQueries
from src.services.results import unwrap

router = APIRouter(prefix="/api/v1", tags=["taxonomy"])


@router.get("/categories", response_model=list[CategoryWithCount])
async def get_categories(
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Get all categories with the number of recipes the viewer can see in each."""
    return unwrap(await queries.categories_with_counts())


@router.get("/tags", response_model=list[TagResponse])
async def get_tags(
    queries: Annotated[RecipeQueries, Depends(get_recipe_queries)],
):
    """Get all tags."""
    return unwrap(await queries.tags())


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    data: TagCreate,
    response: Response,
    engagement: Annotated[EngagementService, Depends(get_engagement_service)],
):
    """Create a tag; an existing tag with the same name is returned instead (200)."""
    tag, created = engagement.create_tag(data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return tag
