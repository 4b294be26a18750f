"""Category and tag models with their recipe junction tables."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import CreatedAtMixin

recipe_categories = Table(
    "recipe_categories",
    Base.metadata,
    Column("recipe_id", Integer, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    ),
)

recipe_tags = Table(
    "recipe_tags",
    Base.metadata,
    Column("recipe_id", Integer, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base, CreatedAtMixin):
    """Global recipe category (Desayunos, Postres, ...)."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(16), nullable=True)

    recipes = relationship("Recipe", secondary=recipe_categories, back_populates="categories")


class Tag(Base, CreatedAtMixin):
    """Free-form label any authenticated user can create."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    slug = Column(String(60), unique=True, nullable=False)
    color = Column(String(7), nullable=True)  # Hex color like "#e94560"

    recipes = relationship("Recipe", secondary=recipe_tags, back_populates="tags")


# Seeded by the initial migration and by tests.
DEFAULT_CATEGORIES = [
    ("Desayunos", "desayunos", "🍳"),
    ("Almuerzos", "almuerzos", "🍝"),
    ("Cenas", "cenas", "🍽️"),
    ("Postres", "postres", "🍰"),
    ("Sopas", "sopas", "🍲"),
    ("Ensaladas", "ensaladas", "🥗"),
    ("Bebidas", "bebidas", "🍹"),
    ("Snacks", "snacks", "🍿"),
    ("Panaderia", "panaderia", "🍞"),
    ("Mariscos", "mariscos", "🦐"),
]
