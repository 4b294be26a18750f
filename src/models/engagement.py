"""Per-user recipe records: bookmarks, likes, and notes."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import CreatedAtMixin, TimestampMixin


class Bookmark(Base, CreatedAtMixin):
    """Recipe saved by a user."""

    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "recipe_id", name="uq_bookmarks_user_recipe"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)

    recipe = relationship("Recipe", back_populates="bookmarks")


class Like(Base, CreatedAtMixin):
    """Like on a recipe; keyed by (user, recipe) with no surrogate id."""

    __tablename__ = "likes"

    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True, index=True
    )

    recipe = relationship("Recipe", back_populates="likes")


class RecipeNote(Base, TimestampMixin):
    """Free text a user attaches to a recipe; private unless flagged otherwise."""

    __tablename__ = "recipe_notes"
    __table_args__ = (UniqueConstraint("user_id", "recipe_id", name="uq_recipe_notes_user_recipe"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    is_private = Column(Boolean, nullable=False, default=True)

    recipe = relationship("Recipe", back_populates="notes")
