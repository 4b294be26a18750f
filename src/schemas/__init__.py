"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from src.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from src.schemas.profile import OwnProfileResponse, ProfileResponse, ProfileUpdate
from src.schemas.recipe import RecipeDetail, RecipeForm, RecipePayload, RecipeSummary
from src.schemas.taxonomy import CategoryResponse, TagCreate, TagResponse

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "ProfileResponse",
    "OwnProfileResponse",
    "ProfileUpdate",
    "RecipePayload",
    "RecipeForm",
    "RecipeSummary",
    "RecipeDetail",
    "CategoryResponse",
    "TagCreate",
    "TagResponse",
    "NoteCreate",
    "NoteUpdate",
    "NoteResponse",
]
