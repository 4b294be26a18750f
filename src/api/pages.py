"""Screen endpoints: everything one page shows, loaded in parallel.

Each endpoint runs its loaders through ``run_actions``. A loader that fails
leaves its default in ``data``, its reason in ``errors``, and one error toast
in ``toasts``; the rest of the page is still returned.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_recipe_queries
from src.database import get_db
from src.models.enums import DIFFICULTY_LABELS
from src.schemas.page import PageResponse
from src.schemas.recipe import SearchFilters
from src.services.actions import ActionConfig, run_actions
from src.services.auth import user_for_reset_token
from src.services.notifier import ToastCollector
from src.services.recipe_queries import RecipeQueries
from src.services.results import ErrorCode, Ok

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

Queries = Annotated[RecipeQueries, Depends(get_recipe_queries)]

EMPTY_PAGE = {"recipes": [], "total_count": 0, "total_pages": 0, "current_page": 1}


async def _render(page: str, actions: dict[str, ActionConfig], params=None) -> PageResponse:
    toasts = ToastCollector()
    outcome = await run_actions(actions, params=params, notifier=toasts)
    return PageResponse.from_outcome(page, outcome, toasts)


def _difficulty_options():
    async def load(_):
        return Ok([{"value": d.value, "label": label} for d, label in DIFFICULTY_LABELS.items()])

    return load


@router.get("/", response_model=PageResponse)
async def home_page(queries: Queries):
    """Latest public recipes and the category grid."""
    return await _render(
        "home",
        {
            "featured": ActionConfig(lambda _: queries.featured_recipes(), default=[]),
            "categories": ActionConfig(lambda _: queries.categories(), default=[]),
        },
    )


@router.get("/recipes", response_model=PageResponse)
async def recipes_page(queries: Queries, category: str | None = None, page: int = 1):
    return await _render(
        "recipes",
        {
            "recipes": ActionConfig(
                lambda p: queries.recipes_page(p["category"], p["page"]), default=EMPTY_PAGE
            ),
            "categories": ActionConfig(lambda _: queries.categories(), default=[]),
        },
        params={"category": category, "page": page},
    )


@router.get("/search", response_model=PageResponse)
async def search_page(
    queries: Queries,
    q: str | None = None,
    category: str | None = None,
    tag: str | None = None,
    difficulty: str | None = None,
    time: Annotated[int | None, Query(ge=0)] = None,
    page: int = 1,
):
    """Search results plus the options of every filter."""
    filters = SearchFilters(
        q=q, category=category, tag=tag, difficulty=difficulty, time=time, page=page
    )
    return await _render(
        "search",
        {
            "results": ActionConfig(lambda f: queries.search(f), default=EMPTY_PAGE),
            "categories": ActionConfig(lambda _: queries.categories(), default=[]),
            "tags": ActionConfig(lambda _: queries.tags(), default=[]),
            "difficulties": ActionConfig(_difficulty_options(), default=[]),
        },
        params=filters,
    )


@router.get("/categories", response_model=PageResponse)
async def categories_page(queries: Queries):
    return await _render(
        "categories",
        {
            "categories": ActionConfig(lambda _: queries.categories(), default=[]),
            "counts": ActionConfig(lambda _: queries.category_counts(), default={}),
        },
    )


@router.get("/recipes/new", response_model=PageResponse)
async def new_recipe_page(queries: Queries):
    """Options for the recipe form."""
    return await _render(
        "recipe_new",
        {
            "categories": ActionConfig(lambda _: queries.categories(), default=[]),
            "tags": ActionConfig(lambda _: queries.tags(), default=[]),
            "difficulties": ActionConfig(_difficulty_options(), default=[]),
        },
    )


@router.get("/recipes/{recipe_id}", response_model=PageResponse)
async def recipe_page(recipe_id: int, queries: Queries, servings: int | None = None):
    """Recipe with likes, the viewer's like/bookmark state, and visible notes."""
    response = await _render(
        "recipe",
        {
            "recipe": ActionConfig(lambda _: queries.recipe_detail(recipe_id, servings)),
            "likes": ActionConfig(
                lambda _: queries.like_summary(recipe_id),
                default={"recipe_id": recipe_id, "liked": False, "likes_count": 0},
            ),
            "viewer": ActionConfig(
                lambda _: queries.viewer_state(recipe_id),
                default={"liked": False, "bookmarked": False},
            ),
            "notes": ActionConfig(lambda _: queries.notes(recipe_id), default=[]),
        },
    )
    _raise_if_missing(response, "recipe")
    return response


@router.get("/recipes/{recipe_id}/edit", response_model=PageResponse)
async def edit_recipe_page(recipe_id: int, queries: Queries):
    """Current contents of an owned recipe plus the form options."""
    response = await _render(
        "recipe_edit",
        {
            "recipe": ActionConfig(lambda _: queries.recipe_form(recipe_id)),
            "categories": ActionConfig(lambda _: queries.categories(), default=[]),
            "tags": ActionConfig(lambda _: queries.tags(), default=[]),
            "difficulties": ActionConfig(_difficulty_options(), default=[]),
        },
    )
    _raise_if_missing(response, "recipe")
    return response


@router.get("/my-recipes", response_model=PageResponse)
async def my_recipes_page(queries: Queries):
    return await _render(
        "my_recipes",
        {"recipes": ActionConfig(lambda _: queries.my_recipes(), default=[])},
    )


@router.get("/bookmarks", response_model=PageResponse)
async def bookmarks_page(queries: Queries):
    return await _render(
        "bookmarks",
        {"recipes": ActionConfig(lambda _: queries.bookmarked_recipes(), default=[])},
    )


@router.get("/profile", response_model=PageResponse)
async def profile_page(queries: Queries):
    return await _render(
        "profile",
        {
            "profile": ActionConfig(lambda _: queries.profile()),
            "stats": ActionConfig(
                lambda _: queries.profile_stats(),
                default={"recipes": 0, "bookmarks": 0, "likes": 0},
            ),
        },
    )


@router.get("/login", response_model=PageResponse)
async def login_page(redirect: str | None = None):
    return PageResponse(page="login", data={"redirect": _safe_redirect(redirect)}, errors={})


@router.get("/register", response_model=PageResponse)
async def register_page():
    return PageResponse(page="register", data={}, errors={})


@router.get("/forgot-password", response_model=PageResponse)
async def forgot_password_page():
    return PageResponse(page="forgot_password", data={}, errors={})


@router.get("/reset-password", response_model=PageResponse)
async def reset_password_page(db: Annotated[Session, Depends(get_db)], token: str = ""):
    """The form behind a reset link; says up front whether the link still works."""
    valid = bool(token) and user_for_reset_token(db, token) is not None
    return PageResponse(
        page="reset_password", data={"token": token, "token_valid": valid}, errors={}
    )


def _raise_if_missing(response: PageResponse, name: str) -> None:
    error = response.errors.get(name)
    if error is not None and error.code == ErrorCode.NOT_FOUND.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)


def _safe_redirect(target: str | None) -> str:
    """Only same-site paths are followed after login."""
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return "/"
