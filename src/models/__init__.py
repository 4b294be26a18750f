"""SQLAlchemy models."""

from src.models.engagement import Bookmark, Like, RecipeNote
from src.models.recipe import Ingredient, Instruction, Recipe, RecipeIngredient
from src.models.recipe_import import RecipeImport
from src.models.storage_object import StorageObject
from src.models.taxonomy import Category, Tag, recipe_categories, recipe_tags
from src.models.user import Profile, User

__all__ = [
    "User",
    "Profile",
    "Recipe",
    "Ingredient",
    "RecipeIngredient",
    "Instruction",
    "Category",
    "Tag",
    "recipe_categories",
    "recipe_tags",
    "Bookmark",
    "Like",
    "RecipeNote",
    "RecipeImport",
    "StorageObject",
]
