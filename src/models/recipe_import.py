"""A recipe page submitted by URL, fetched in the background and confirmed by its owner."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import ImportStatus
from src.models.mixins import TimestampMixin


class RecipeImport(Base, TimestampMixin):
    __tablename__ = "recipe_imports"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source_url = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=ImportStatus.PENDING.value, index=True)
    # ParsedRecipe.model_dump() once the page has been read
    parsed_recipe = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    # Set when the owner turns the parsed result into a recipe
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True)

    recipe = relationship("Recipe")

    @property
    def is_ready(self) -> bool:
        return self.status == ImportStatus.COMPLETED.value

    @property
    def is_confirmed(self) -> bool:
        return self.recipe_id is not None
