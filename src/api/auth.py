"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user
from src.api.session import clear_session_cookie, set_session_cookie
from src.database import get_db
from src.models.user import User
from src.schemas.auth import (
    AuthResponse,
    PasswordChange,
    PasswordReset,
    PasswordResetRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from src.services.auth import (
    authenticate_user,
    change_password,
    create_access_token,
    create_password_reset_token,
    create_user,
    get_user_by_email,
    password_reset_url,
    reset_password,
    user_for_reset_token,
    verify_password,
)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _start_session(response: Response, user: User) -> AuthResponse:
    """Issue a token, mirror it into the session cookie, and describe the user."""
    access_token = create_access_token(user.id, user.email)
    set_session_cookie(response, access_token)
    return AuthResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user and start a session."""
    if get_user_by_email(db, user_data.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = create_user(db, user_data.email, user_data.password, user_data.name)
    return _start_session(response, user)


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
):
    """Sign in with email and password."""
    user = authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid login credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _start_session(response, user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """The signed-in account, from a bearer token or the session cookie."""
    return current_user


@router.post("/password", status_code=status.HTTP_204_NO_CONTENT)
async def update_password(
    data: PasswordChange,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Change the current user's password."""
    if data.new_password == data.current_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password should be different from the old password",
        )
    if not change_password(db, current_user, data.current_password, data.new_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid login credentials",
        )


@router.post("/logout")
async def logout(response: Response):
    """End the browser session (API clients simply discard the token)."""
    clear_session_cookie(response)
    return {"message": "Logged out successfully"}


@router.post("/password/forgot", status_code=status.HTTP_202_ACCEPTED)
async def forgot_password(
    data: PasswordResetRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Send a reset link when the email belongs to an account.

    The reply does not reveal whether the account exists.
    """
    user = get_user_by_email(db, data.email)
    if user is not None:
        from src.tasks.password_reset import send_password_reset

        send_password_reset.delay(user.email, password_reset_url(create_password_reset_token(user)))
    return {
        "message": "Si el email esta registrado, recibiras un enlace para restablecer tu contrasena"
    }


@router.post("/password/reset", response_model=AuthResponse)
async def confirm_password_reset(
    data: PasswordReset,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
):
    """Set a new password from a reset link and start a session."""
    user = user_for_reset_token(db, data.token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token has expired or is invalid",
        )
    if verify_password(data.new_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password should be different from the old password",
        )

    reset_password(db, user, data.new_password)
    return _start_session(response, user)
