"""Read-side loaders for recipes, taxonomy, engagement, and profiles.

Every loader is a coroutine returning ``Ok(value)`` or ``Err(...)`` so it can
be handed straight to ``run_actions`` by page endpoints, or unwrapped by API
endpoints. Reads always go through the visibility rules in ``policies``.
"""

import functools
import logging
import math
from fractions import Fraction
from collections.abc import Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from src.config import get_settings
from src.models.engagement import Bookmark, Like, RecipeNote
from src.models.recipe import Recipe, RecipeIngredient
from src.models.taxonomy import Category, Tag, recipe_categories, recipe_tags
from src.models.user import Profile, User
from src.schemas.note import NoteResponse
from src.schemas.profile import OwnProfileResponse, ProfileResponse, ProfileStats
from src.schemas.recipe import (
    AuthorInfo,
    IngredientInput,
    IngredientLine,
    InstructionInput,
    InstructionStep,
    LikeStatus,
    RecipeDetail,
    RecipeFormData,
    RecipePage,
    RecipeSummary,
    SearchFilters,
    ViewerState,
)
from src.schemas.taxonomy import CategoryResponse, CategoryWithCount, TagResponse
from src.services.policies import note_visible_to, owned_recipe, recipe_visible_to
from src.services.results import ActionResult, Err, ErrorCode, Ok, not_found, server_error
from src.services.text import clamp_servings, sanitize_search_query, scale_quantity

logger = logging.getLogger(__name__)

settings = get_settings()

ANONYMOUS_AUTHOR = "Usuario"
NO_FILTER = "all"
DEFAULT_SERVINGS = 4


def loader(method):
    """Turn failures inside a loader into an ``Err`` instead of an exception.

    Database errors become SERVER_ERROR; anything else, such as stored rows that
    no longer fit a response model, becomes UNKNOWN.
    """

    @functools.wraps(method)
    async def wrapper(self: "RecipeQueries", *args, **kwargs) -> ActionResult:
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"{method.__name__} failed: {e}", exc_info=True)
            self.db.rollback()
            return server_error("Error en la base de datos")
        except Exception as e:
            logger.error(f"{method.__name__} failed: {e}", exc_info=True)
            return Err(str(e) or "Unknown error", ErrorCode.UNKNOWN, 500)

    return wrapper


def _scaled_lines(recipe: Recipe, servings: int | None) -> list[IngredientLine]:
    lines = [
        IngredientLine.model_validate(link)
        for link in sorted(recipe.ingredient_links, key=lambda li: li.order_index)
    ]
    if servings is None:
        return lines
    ratio = Fraction(clamp_servings(servings), recipe.servings or DEFAULT_SERVINGS)
    return [
        line.model_copy(update={"quantity": scale_quantity(line.quantity, ratio)})
        for line in lines
    ]


def _requires_login() -> Err:
    return Err("Auth session missing!", ErrorCode.UNAUTHORIZED, 401)


class RecipeQueries:
    """Loaders scoped to one viewer (``None`` for anonymous visitors)."""

    def __init__(self, db: Session, viewer_id: int | None = None):
        self.db = db
        self.viewer_id = viewer_id

    # --- Taxonomy ---

    @loader
    async def categories(self) -> ActionResult[list[CategoryResponse]]:
        rows = self.db.query(Category).order_by(Category.name).all()
        return Ok([CategoryResponse.model_validate(c) for c in rows])

    @loader
    async def category_counts(self) -> ActionResult[dict[int, int]]:
        """Number of visible recipes per category id."""
        rows = (
            self.db.query(recipe_categories.c.category_id, func.count())
            .join(Recipe, Recipe.id == recipe_categories.c.recipe_id)
            .filter(recipe_visible_to(self.viewer_id))
            .group_by(recipe_categories.c.category_id)
            .all()
        )
        return Ok({category_id: count for category_id, count in rows})

    async def categories_with_counts(self) -> ActionResult[list[CategoryWithCount]]:
        categories = await self.categories()
        if not categories.ok:
            return categories
        counts = await self.category_counts()
        if not counts.ok:
            return counts
        return Ok(
            [
                CategoryWithCount(**c.model_dump(), recipe_count=counts.value.get(c.id, 0))
                for c in categories.value
            ]
        )

    @loader
    async def tags(self) -> ActionResult[list[TagResponse]]:
        rows = self.db.query(Tag).order_by(Tag.name).all()
        return Ok([TagResponse.model_validate(t) for t in rows])

    # --- Recipe listings ---

    @loader
    async def featured_recipes(self, limit: int = 6) -> ActionResult[list[RecipeSummary]]:
        recipes = (
            self._recipe_query()
            .filter(Recipe.is_public.is_(True))
            .order_by(Recipe.created_at.desc(), Recipe.id.desc())
            .limit(limit)
            .all()
        )
        return Ok(self._summaries(recipes))

    @loader
    async def recipes_page(
        self, category_slug: str | None = None, page: int = 1
    ) -> ActionResult[RecipePage]:
        """Public recipes, newest first, optionally restricted to one category."""
        query = self._recipe_query().filter(Recipe.is_public.is_(True))
        if category_slug:
            query = query.filter(Recipe.id.in_(_recipes_in_category(category_slug)))
        return Ok(self._paginate(query, page))

    @loader
    async def search(self, filters: SearchFilters) -> ActionResult[RecipePage]:
        query = self._recipe_query().filter(Recipe.is_public.is_(True))

        text = sanitize_search_query(filters.q)
        if text:
            pattern = f"%{text}%"
            query = query.filter(
                or_(
                    Recipe.title.ilike(pattern, escape="\\"),
                    Recipe.description.ilike(pattern, escape="\\"),
                )
            )
        if filters.difficulty and filters.difficulty != NO_FILTER:
            query = query.filter(Recipe.difficulty == filters.difficulty)
        if filters.time is not None:
            query = query.filter(Recipe.cooking_time <= filters.time)
        if filters.category and filters.category != NO_FILTER:
            query = query.filter(Recipe.id.in_(_recipes_in_category(filters.category)))
        if filters.tag and filters.tag != NO_FILTER:
            query = query.filter(Recipe.id.in_(_recipes_with_tag(filters.tag)))

        return Ok(self._paginate(query, filters.page))

    @loader
    async def my_recipes(self) -> ActionResult[list[RecipeSummary]]:
        if self.viewer_id is None:
            return _requires_login()
        recipes = (
            self._recipe_query()
            .filter(Recipe.user_id == self.viewer_id)
            .order_by(Recipe.created_at.desc(), Recipe.id.desc())
            .all()
        )
        return Ok(self._summaries(recipes))

    @loader
    async def bookmarked_recipes(self) -> ActionResult[list[RecipeSummary]]:
        if self.viewer_id is None:
            return _requires_login()
        recipes = (
            self._recipe_query()
            .join(Bookmark, Bookmark.recipe_id == Recipe.id)
            .filter(Bookmark.user_id == self.viewer_id, recipe_visible_to(self.viewer_id))
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            .all()
        )
        return Ok(self._summaries(recipes))

    # --- Single recipe ---

    @loader
    async def recipe_detail(
        self, recipe_id: int, servings: int | None = None
    ) -> ActionResult[RecipeDetail]:
        """A visible recipe; with ``servings``, quantities are scaled to that many portions."""
        recipe = (
            self._recipe_query()
            .options(
                selectinload(Recipe.ingredient_links).joinedload(RecipeIngredient.ingredient),
                selectinload(Recipe.instructions),
                selectinload(Recipe.categories),
            )
            .filter(Recipe.id == recipe_id, recipe_visible_to(self.viewer_id))
            .first()
        )
        if recipe is None:
            return not_found("Recipe not found")

        summary = self._summaries([recipe])[0]
        author = recipe.author
        return Ok(
            RecipeDetail(
                **summary.model_dump(),
                source_url=recipe.source_url,
                is_imported=recipe.is_imported,
                imported_from=recipe.imported_from,
                updated_at=recipe.updated_at,
                author=AuthorInfo(
                    id=recipe.user_id,
                    name=(author.display_name if author else None) or ANONYMOUS_AUTHOR,
                    avatar_url=author.avatar_url if author else None,
                ),
                ingredients=_scaled_lines(recipe, servings),
                scaled_servings=clamp_servings(servings) if servings is not None else None,
                instructions=[
                    InstructionStep.model_validate(step)
                    for step in sorted(recipe.instructions, key=lambda s: s.step_number)
                ],
                categories=[CategoryResponse.model_validate(c) for c in recipe.categories],
            )
        )

    @loader
    async def recipe_form(self, recipe_id: int) -> ActionResult[RecipeFormData]:
        """Current contents of an owned recipe, shaped like the write payload."""
        if self.viewer_id is None:
            return _requires_login()
        recipe = owned_recipe(self.db, recipe_id, self.viewer_id)
        if recipe is None:
            return not_found("Recipe not found")
        return Ok(
            RecipeFormData(
                id=recipe.id,
                title=recipe.title,
                description=recipe.description,
                image_url=recipe.image_url,
                prep_time=recipe.prep_time,
                cooking_time=recipe.cooking_time,
                servings=recipe.servings or DEFAULT_SERVINGS,
                difficulty=recipe.difficulty or "medium",
                is_public=recipe.is_public,
                ingredients=[
                    IngredientInput(
                        name=link.name, quantity=link.quantity, unit=link.unit, notes=link.notes
                    )
                    for link in recipe.ingredient_links
                ],
                instructions=[InstructionInput(content=s.content) for s in recipe.instructions],
                category_ids=[c.id for c in recipe.categories],
                tag_ids=[t.id for t in recipe.tags],
            )
        )

    @loader
    async def like_summary(self, recipe_id: int) -> ActionResult[LikeStatus]:
        if not self._is_visible(recipe_id):
            return not_found("Recipe not found")
        count = self.db.query(func.count()).filter(Like.recipe_id == recipe_id).scalar()
        liked = self.viewer_id is not None and self._exists(
            Like, user_id=self.viewer_id, recipe_id=recipe_id
        )
        return Ok(LikeStatus(recipe_id=recipe_id, liked=liked, likes_count=count or 0))

    @loader
    async def viewer_state(self, recipe_id: int) -> ActionResult[ViewerState]:
        if self.viewer_id is None:
            return Ok(ViewerState())
        return Ok(
            ViewerState(
                liked=self._exists(Like, user_id=self.viewer_id, recipe_id=recipe_id),
                bookmarked=self._exists(Bookmark, user_id=self.viewer_id, recipe_id=recipe_id),
            )
        )

    @loader
    async def notes(self, recipe_id: int) -> ActionResult[list[NoteResponse]]:
        """The viewer's own notes plus other users' shared notes, newest first."""
        if not self._is_visible(recipe_id):
            return not_found("Recipe not found")
        rows = (
            self.db.query(RecipeNote)
            .filter(RecipeNote.recipe_id == recipe_id, note_visible_to(self.viewer_id))
            .order_by(RecipeNote.created_at.desc(), RecipeNote.id.desc())
            .all()
        )
        return Ok([NoteResponse.model_validate(n) for n in rows])

    # --- Profiles ---

    @loader
    async def profile(self) -> ActionResult[OwnProfileResponse]:
        if self.viewer_id is None:
            return _requires_login()
        row = (
            self.db.query(Profile, User.email)
            .join(User, User.id == Profile.id)
            .filter(Profile.id == self.viewer_id)
            .first()
        )
        if row is None:
            return not_found("User not found")
        profile, email = row
        return Ok(
            OwnProfileResponse(**ProfileResponse.model_validate(profile).model_dump(), email=email)
        )

    @loader
    async def public_profile(self, profile_id: int) -> ActionResult[ProfileResponse]:
        profile = self.db.get(Profile, profile_id)
        if profile is None:
            return not_found("User not found")
        return Ok(ProfileResponse.model_validate(profile))

    @loader
    async def profile_stats(self) -> ActionResult[ProfileStats]:
        if self.viewer_id is None:
            return _requires_login()
        return Ok(
            ProfileStats(
                recipes=self._count(Recipe.id, Recipe.user_id == self.viewer_id),
                bookmarks=self._count(Bookmark.id, Bookmark.user_id == self.viewer_id),
                likes=self._count(Like.recipe_id, Like.user_id == self.viewer_id),
            )
        )

    # --- helpers ---

    def _recipe_query(self) -> Query:
        return self.db.query(Recipe).options(
            joinedload(Recipe.author), selectinload(Recipe.tags)
        )

    def _is_visible(self, recipe_id: int) -> bool:
        return (
            self.db.query(Recipe.id)
            .filter(Recipe.id == recipe_id, recipe_visible_to(self.viewer_id))
            .first()
            is not None
        )

    def _exists(self, model, **criteria) -> bool:
        return self.db.query(model).filter_by(**criteria).first() is not None

    def _count(self, column, *criteria) -> int:
        return self.db.query(func.count(column)).filter(*criteria).scalar() or 0

    def _likes_by_recipe(self, recipe_ids: Iterable[int]) -> dict[int, int]:
        ids = list(recipe_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Like.recipe_id, func.count())
            .filter(Like.recipe_id.in_(ids))
            .group_by(Like.recipe_id)
            .all()
        )
        return dict(rows)

    def _summaries(self, recipes: list[Recipe]) -> list[RecipeSummary]:
        likes = self._likes_by_recipe(r.id for r in recipes)
        return [
            RecipeSummary(
                id=r.id,
                user_id=r.user_id,
                title=r.title,
                slug=r.slug,
                description=r.description,
                image_url=r.image_url,
                prep_time=r.prep_time,
                cooking_time=r.cooking_time,
                servings=r.servings,
                difficulty=r.difficulty,
                is_public=r.is_public,
                created_at=r.created_at,
                author_name=r.author.display_name if r.author else None,
                likes_count=likes.get(r.id, 0),
                tags=[TagResponse.model_validate(t) for t in r.tags],
            )
            for r in recipes
        ]

    def _paginate(self, query: Query, page: int) -> RecipePage:
        per_page = settings.recipes_per_page
        current_page = max(1, page)
        total = query.order_by(None).count()
        recipes = (
            query.order_by(Recipe.created_at.desc(), Recipe.id.desc())
            .offset((current_page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return RecipePage(
            recipes=self._summaries(recipes),
            total_count=total,
            total_pages=math.ceil(total / per_page),
            current_page=current_page,
        )


def _recipes_in_category(slug: str):
    return (
        select(recipe_categories.c.recipe_id)
        .join(Category, Category.id == recipe_categories.c.category_id)
        .where(Category.slug == slug)
    )


def _recipes_with_tag(slug: str):
    return (
        select(recipe_tags.c.recipe_id)
        .join(Tag, Tag.id == recipe_tags.c.tag_id)
        .where(Tag.slug == slug)
    )
