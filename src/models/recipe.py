"""Recipe, ingredient catalog, and instruction models."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import CreatedAtMixin, TimestampMixin
from src.models.taxonomy import recipe_categories, recipe_tags


class Recipe(Base, TimestampMixin):
    """Recipe published by a profile."""

    __tablename__ = "recipes"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_recipes_user_slug"),
        CheckConstraint(
            "difficulty IN ('easy', 'medium', 'hard')", name="ck_recipes_difficulty"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(100), nullable=False)
    slug = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    source_url = Column(Text, nullable=True)
    prep_time = Column(Integer, nullable=True)  # minutes
    cooking_time = Column(Integer, nullable=True)  # minutes
    servings = Column(Integer, nullable=True, default=4)
    difficulty = Column(String(10), nullable=True)
    is_public = Column(Boolean, nullable=False, default=True, index=True)
    is_imported = Column(Boolean, nullable=False, default=False)
    imported_from = Column(Text, nullable=True)

    # Relationships
    author = relationship("Profile", back_populates="recipes")
    ingredient_links = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.order_index",
    )
    instructions = relationship(
        "Instruction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="Instruction.step_number",
    )
    categories = relationship("Category", secondary=recipe_categories, back_populates="recipes")
    tags = relationship("Tag", secondary=recipe_tags, back_populates="recipes")
    bookmarks = relationship("Bookmark", back_populates="recipe", cascade="all, delete-orphan")
    likes = relationship("Like", back_populates="recipe", cascade="all, delete-orphan")
    notes = relationship("RecipeNote", back_populates="recipe", cascade="all, delete-orphan")


class Ingredient(Base, CreatedAtMixin):
    """Global ingredient catalog keyed by normalized name."""

    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    category = Column(String(50), nullable=True)


class RecipeIngredient(Base):
    """Ordered link between a recipe and a catalog ingredient."""

    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        UniqueConstraint("recipe_id", "ingredient_id", name="uq_recipe_ingredients_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False)
    quantity = Column(String(50), nullable=True)  # "2", "1/2", "1.5"
    unit = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)

    # Relationships
    recipe = relationship("Recipe", back_populates="ingredient_links")
    ingredient = relationship("Ingredient", lazy="joined")

    @property
    def name(self) -> str:
        return self.ingredient.name


class Instruction(Base):
    """Numbered preparation step of a recipe."""

    __tablename__ = "instructions"
    __table_args__ = (
        UniqueConstraint("recipe_id", "step_number", name="uq_instructions_recipe_step"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    step_number = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)

    recipe = relationship("Recipe", back_populates="instructions")
