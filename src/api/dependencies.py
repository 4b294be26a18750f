"""FastAPI dependencies for authentication and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.config import get_settings
from src.database import get_db
from src.models.user import User
from src.services.auth import decode_access_token
from src.services.engagement import EngagementService
from src.services.recipe_queries import RecipeQueries
from src.services.recipe_writer import RecipeWriter
from src.services.storage import StorageService

settings = get_settings()

# Browsers authenticate with the session cookie, API clients with a bearer token.
security = HTTPBearer(auto_error=False)


def get_request_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Bearer token if present, otherwise the session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def _user_from_token(db: Session, token: str | None) -> User | None:
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        return None
    return db.query(User).filter(User.id == int(payload["sub"])).first()


def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User | None:
    """The signed-in user, or None for anonymous visitors."""
    return _user_from_token(db, get_request_token(request, credentials))


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from the JWT token or session cookie."""
    token = get_request_token(request, credentials)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Auth session missing!",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_recipe_queries(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User | None, Depends(get_optional_user)],
) -> RecipeQueries:
    """Get read loaders scoped to the current viewer."""
    return RecipeQueries(db, user.id if user else None)


def get_recipe_writer(
    db: Annotated[Session, Depends(get_db)],
) -> RecipeWriter:
    """Get recipe writer with dependencies."""
    return RecipeWriter(db)


def get_engagement_service(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> EngagementService:
    """Get likes/bookmarks/notes service acting as the current user."""
    return EngagementService(db, user.id)


def get_storage_service(
    db: Annotated[Session, Depends(get_db)],
) -> StorageService:
    """Get file storage service with dependencies."""
    return StorageService(db)
