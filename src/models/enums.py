"""Enums for model fields."""

from enum import Enum


class Difficulty(str, Enum):
    """Recipe difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        """Display label shown next to a recipe."""
        return DIFFICULTY_LABELS[self]


DIFFICULTY_LABELS = {
    Difficulty.EASY: "Facil",
    Difficulty.MEDIUM: "Media",
    Difficulty.HARD: "Dificil",
}


class ImportStatus(str, Enum):
    """Lifecycle of a recipe URL import."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Bucket(str, Enum):
    """Public-read file storage buckets."""

    RECIPE_IMAGES = "recipe-images"
    AVATARS = "avatars"
