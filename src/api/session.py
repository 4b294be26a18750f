"""Session cookie handling and route protection for page requests."""

import logging
import re
from urllib.parse import urlencode

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.config import get_settings
from src.services.auth import decode_access_token, refresh_access_token

logger = logging.getLogger(__name__)

settings = get_settings()

AUTH_PAGES = ("/login", "/register")
PROTECTED_PREFIXES = ("/profile", "/my-recipes", "/bookmarks")
_EDIT_PAGE = re.compile(r"^/recipes/[^/]+/edit$")


def is_protected_page(path: str) -> bool:
    return (
        path.startswith(PROTECTED_PREFIXES)
        or path == "/recipes/new"
        or _EDIT_PAGE.match(path) is not None
    )


def is_auth_page(path: str) -> bool:
    return path.startswith(AUTH_PAGES)


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        max_age=settings.jwt_expiration_minutes * 60,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name)


def _sets_session_cookie(response: Response) -> bool:
    prefix = f"{settings.session_cookie_name}="
    return any(value.startswith(prefix) for value in response.headers.getlist("set-cookie"))


class SessionMiddleware(BaseHTTPMiddleware):
    """Keep the session cookie fresh and guard pages by sign-in state.

    - a valid cookie is re-issued with a new expiry on every response;
    - an invalid cookie is cleared;
    - anonymous visitors of protected pages go to ``/login?redirect=<path>``;
    - signed-in visitors of the login and register pages go to ``/``.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        token = request.cookies.get(settings.session_cookie_name)
        payload = decode_access_token(token) if token else None
        path = request.url.path

        if payload is not None and is_auth_page(path):
            return RedirectResponse("/", status_code=307)
        if payload is None and is_protected_page(path):
            logger.debug(f"Redirecting anonymous visitor of {path} to login")
            return RedirectResponse(
                f"/login?{urlencode({'redirect': path})}", status_code=307
            )

        response = await call_next(request)

        # Login and logout set the cookie themselves.
        if _sets_session_cookie(response):
            return response
        if payload is not None:
            set_session_cookie(response, refresh_access_token(payload))
        elif token:
            clear_session_cookie(response)
        return response
