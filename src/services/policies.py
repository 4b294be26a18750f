"""Row-level authorization rules expressed as query filters.

Every read or write of user content goes through these filters so the rules
live in one place:

- recipes (and their ingredients, instructions, categories, tags) are
  readable when public or owned by the viewer; only the owner mutates them;
- likes are readable by everyone, bookmarks only by their owner;
- notes are readable by their author, or by anyone when not private, and
  only the author mutates them.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from src.models.engagement import RecipeNote
from src.models.recipe import Recipe


def recipe_visible_to(viewer_id: int | None):
    """Filter clause for recipes a viewer may read."""
    if viewer_id is None:
        return Recipe.is_public.is_(True)
    return or_(Recipe.is_public.is_(True), Recipe.user_id == viewer_id)


def visible_recipes(db: Session, viewer_id: int | None) -> Query:
    return db.query(Recipe).filter(recipe_visible_to(viewer_id))


def owned_recipe(db: Session, recipe_id: int, owner_id: int) -> Recipe | None:
    """The recipe if it exists and belongs to ``owner_id``."""
    return (
        db.query(Recipe)
        .filter(Recipe.id == recipe_id, Recipe.user_id == owner_id)
        .first()
    )


def note_visible_to(viewer_id: int | None):
    """Filter clause for notes a viewer may read."""
    if viewer_id is None:
        return RecipeNote.is_private.is_(False)
    return or_(RecipeNote.user_id == viewer_id, RecipeNote.is_private.is_(False))
