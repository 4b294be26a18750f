"""Account credentials and the signed tokens behind both bearer auth and the session cookie."""

import hashlib
import logging
from datetime import UTC, datetime, timedelta
from typing import TypedDict
from urllib.parse import urlencode

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.user import Profile, User

logger = logging.getLogger(__name__)

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenClaims(TypedDict):
    sub: str
    email: str
    exp: int


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, email: str) -> str:
    """Sign a token for ``user_id`` valid for the configured session lifetime."""
    lifetime = timedelta(minutes=settings.jwt_expiration_minutes)
    claims = {"sub": str(user_id), "email": email, "exp": datetime.now(UTC) + lifetime}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def decode_access_token(token: str) -> TokenClaims | None:
    """Claims of a valid session token; None when it is malformed, forged, expired,
    or issued for another purpose such as a password reset.
    """
    claims = _decode(token)
    if claims is None or "purpose" in claims:
        return None
    return claims


def refresh_access_token(claims: TokenClaims) -> str:
    """Re-sign still-valid claims with a fresh expiry."""
    return create_access_token(int(claims["sub"]), claims["email"])


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Rejected sign-in attempt")
        return None
    return user


def create_user(db: Session, email: str, password: str, name: str | None = None) -> User:
    """Create an account and its profile.

    The display name falls back to the part of the email before ``@``.
    """
    email = email.strip().lower()
    display_name = (name or "").strip() or email.split("@", 1)[0]
    user = User(email=email, password_hash=get_password_hash(password))
    user.profile = Profile(display_name=display_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> bool:
    """Replace the user's password; False when the current one does not match."""
    if not verify_password(current_password, user.password_hash):
        return False
    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"User {user.id} changed their password")
    return True


# --- Password recovery ---

PASSWORD_RESET_PURPOSE = "password_reset"


def _password_fingerprint(user: User) -> str:
    # Changes with the password, so a token is accepted at most once.
    return hashlib.sha256(user.password_hash.encode()).hexdigest()[:16]


def create_password_reset_token(user: User) -> str:
    lifetime = timedelta(minutes=settings.password_reset_expiration_minutes)
    claims = {
        "sub": str(user.id),
        "purpose": PASSWORD_RESET_PURPOSE,
        "pwd": _password_fingerprint(user),
        "exp": datetime.now(UTC) + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def password_reset_url(token: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/reset-password?{urlencode({'token': token})}"


def user_for_reset_token(db: Session, token: str) -> User | None:
    """The account a reset token was issued for, if it is still usable."""
    claims = _decode(token)
    if claims is None or claims.get("purpose") != PASSWORD_RESET_PURPOSE:
        return None
    if not str(claims.get("sub", "")).isdigit():
        return None
    user = db.get(User, int(claims["sub"]))
    if user is None or claims.get("pwd") != _password_fingerprint(user):
        return None
    return user


def reset_password(db: Session, user: User, new_password: str) -> None:
    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"User {user.id} reset their password")
