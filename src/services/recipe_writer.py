"""All-or-nothing recipe writes.

A recipe is saved together with its ingredient links, instructions, category
and tag links in a single transaction. Either everything is written or the
session is rolled back and nothing is.
"""

import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.recipe import Ingredient, Instruction, Recipe, RecipeIngredient
from src.models.taxonomy import Category, Tag
from src.schemas.recipe import RecipePayload
from src.services.errors import (
    DUPLICATE_RECIPE_MESSAGE,
    RECIPE_NOT_OWNED_MESSAGE,
    translate_error,
)
from src.services.text import generate_slug, normalize_ingredient_name

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "receta"


class RecipeWriter:
    """Service for creating, replacing, and deleting recipes."""

    def __init__(self, db: Session):
        self.db = db

    def create_recipe_atomic(
        self,
        owner_id: int,
        payload: RecipePayload,
        source_url: str | None = None,
        imported_from: str | None = None,
    ) -> int:
        """Insert a recipe with all of its rows and return its id."""
        slug = generate_slug(payload.title) or FALLBACK_SLUG
        try:
            self._ensure_slug_free(owner_id, slug)

            recipe = Recipe(
                user_id=owner_id,
                slug=slug,
                source_url=source_url,
                is_imported=imported_from is not None,
                imported_from=imported_from,
            )
            self._apply_fields(recipe, payload)
            self.db.add(recipe)
            self.db.flush()

            self._replace_children(recipe, payload)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise self._conflict(e) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created recipe {recipe.id} for user {owner_id}")
        return recipe.id

    def update_recipe_atomic(self, recipe_id: int, owner_id: int, payload: RecipePayload) -> None:
        """Replace a recipe's contents; fails without changes unless the caller owns it."""
        slug = generate_slug(payload.title) or FALLBACK_SLUG
        try:
            recipe = self.db.query(Recipe).filter(Recipe.id == recipe_id).with_for_update().first()
            if recipe is None or (recipe.user_id != owner_id and not recipe.is_public):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found"
                )
            if recipe.user_id != owner_id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN, detail=RECIPE_NOT_OWNED_MESSAGE
                )

            self._ensure_slug_free(owner_id, slug, exclude_id=recipe.id)

            recipe.slug = slug
            self._apply_fields(recipe, payload)
            self._replace_children(recipe, payload)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise self._conflict(e) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Updated recipe {recipe_id} for user {owner_id}")

    def delete_recipe(self, recipe_id: int, owner_id: int) -> None:
        """Delete an owned recipe; dependent rows go with it."""
        recipe = (
            self.db.query(Recipe)
            .filter(Recipe.id == recipe_id, Recipe.user_id == owner_id)
            .first()
        )
        if recipe is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
        self.db.delete(recipe)
        self.db.commit()
        logger.info(f"Deleted recipe {recipe_id} for user {owner_id}")

    # --- helpers ---

    def _ensure_slug_free(self, owner_id: int, slug: str, exclude_id: int | None = None) -> None:
        query = self.db.query(Recipe.id).filter(Recipe.user_id == owner_id, Recipe.slug == slug)
        if exclude_id is not None:
            query = query.filter(Recipe.id != exclude_id)
        if query.first() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_RECIPE_MESSAGE)

    @staticmethod
    def _apply_fields(recipe: Recipe, payload: RecipePayload) -> None:
        recipe.title = payload.title
        recipe.description = payload.description
        recipe.image_url = payload.image_url
        recipe.prep_time = payload.prep_time
        recipe.cooking_time = payload.cooking_time
        recipe.servings = payload.servings
        recipe.difficulty = payload.difficulty.value
        recipe.is_public = payload.is_public

    def _replace_children(self, recipe: Recipe, payload: RecipePayload) -> None:
        # Old rows are flushed away first so (recipe, ingredient) and
        # (recipe, step_number) stay unique while the new set is inserted.
        recipe.ingredient_links.clear()
        recipe.instructions.clear()
        self.db.flush()

        for index, item in enumerate(payload.ingredients):
            recipe.ingredient_links.append(
                RecipeIngredient(
                    ingredient=self._get_or_create_ingredient(item.name),
                    quantity=item.quantity,
                    unit=item.unit,
                    notes=item.notes,
                    order_index=index,
                )
            )

        for index, step in enumerate(payload.instructions, start=1):
            recipe.instructions.append(Instruction(step_number=index, content=step.content))

        recipe.categories = self._load_all(Category, payload.category_ids, "Categoria no valida")
        recipe.tags = self._load_all(Tag, payload.tag_ids, "Etiqueta no valida")
        self.db.flush()

    def _get_or_create_ingredient(self, name: str) -> Ingredient:
        normalized = normalize_ingredient_name(name)
        ingredient = self.db.query(Ingredient).filter(Ingredient.name == normalized).first()
        if ingredient is None:
            ingredient = Ingredient(name=normalized)
            self.db.add(ingredient)
            self.db.flush()
        return ingredient

    def _load_all(self, model, ids: list[int], error: str) -> list:
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return []
        rows = self.db.query(model).filter(model.id.in_(unique_ids)).all()
        if len(rows) != len(unique_ids):
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=error)
        return rows

    @staticmethod
    def _conflict(error: IntegrityError) -> HTTPException:
        raw = str(error.orig)
        if "slug" in raw:
            detail = DUPLICATE_RECIPE_MESSAGE
        else:
            detail = translate_error(raw)
        logger.warning(f"Recipe write rejected by the database: {raw}")
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
