"""Async client for the recipe API.

Every call returns ``Ok(value)`` or ``Err(message, code, status)`` and never
raises for HTTP or transport failures, so it plugs straight into
``MutationRunner``. The ``httpx.AsyncClient`` is created by the caller and
injected, and its lifetime belongs to the caller::

    async with httpx.AsyncClient(base_url="http://localhost:8000") as http:
        api = RecipeApiClient(http, token=token)
        result = await api.create_recipe(form)
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from src.models.enums import Bucket
from src.schemas.auth import AuthResponse
from src.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from src.schemas.profile import OwnProfileResponse, ProfileUpdate
from src.schemas.recipe import (
    BookmarkStatus,
    LikeStatus,
    RecipeCreated,
    RecipeDetail,
    RecipeForm,
)
from src.schemas.recipe_import import RecipeImportConfirm, RecipeImportResponse
from src.schemas.storage import StoredFileResponse
from src.schemas.taxonomy import TagCreate, TagResponse
from src.services.results import ActionResult, Err, ErrorCode, Ok, code_for_status

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

API_PREFIX = "/api/v1"


class RecipeApiClient:
    """Typed wrapper over the recipe HTTP API for interactive controls."""

    def __init__(self, http: httpx.AsyncClient, token: str | None = None):
        self.http = http
        self.token = token

    # --- Auth ---

    async def login(self, email: str, password: str) -> ActionResult[AuthResponse]:
        """Sign in and keep the returned token for later calls."""
        result = await self._request(
            "POST", "/auth/login", AuthResponse, json={"email": email, "password": password}
        )
        if result.ok:
            self.token = result.value.access_token
        return result

    async def update_profile(self, data: ProfileUpdate) -> ActionResult[OwnProfileResponse]:
        return await self._request(
            "PUT", "/profiles/me", OwnProfileResponse, json=data.model_dump(exclude_unset=True)
        )

    # --- Recipes ---

    async def create_recipe(self, form: RecipeForm) -> ActionResult[RecipeCreated]:
        """Validate the form locally, then create the recipe. Invalid forms send nothing."""
        try:
            payload = form.to_payload()
        except ValueError as e:
            return _invalid_form(e)
        return await self._request(
            "POST", "/recipes", RecipeCreated, json=payload.model_dump(mode="json")
        )

    async def update_recipe(self, recipe_id: int, form: RecipeForm) -> ActionResult[RecipeDetail]:
        try:
            payload = form.to_payload()
        except ValueError as e:
            return _invalid_form(e)
        return await self._request(
            "PUT", f"/recipes/{recipe_id}", RecipeDetail, json=payload.model_dump(mode="json")
        )

    async def delete_recipe(self, recipe_id: int) -> ActionResult[None]:
        return await self._request("DELETE", f"/recipes/{recipe_id}")

    # --- Likes and bookmarks ---

    async def set_liked(self, recipe_id: int, liked: bool) -> ActionResult[LikeStatus]:
        return await self._request(
            "POST" if liked else "DELETE", f"/recipes/{recipe_id}/like", LikeStatus
        )

    async def set_bookmarked(
        self, recipe_id: int, bookmarked: bool
    ) -> ActionResult[BookmarkStatus]:
        return await self._request(
            "POST" if bookmarked else "DELETE", f"/recipes/{recipe_id}/bookmark", BookmarkStatus
        )

    # --- Notes ---

    async def create_note(self, recipe_id: int, data: NoteCreate) -> ActionResult[NoteResponse]:
        return await self._request(
            "POST", f"/recipes/{recipe_id}/notes", NoteResponse, json=data.model_dump()
        )

    async def update_note(self, note_id: int, data: NoteUpdate) -> ActionResult[NoteResponse]:
        return await self._request(
            "PUT",
            f"/recipes/notes/{note_id}",
            NoteResponse,
            json=data.model_dump(exclude_unset=True),
        )

    async def delete_note(self, note_id: int) -> ActionResult[None]:
        return await self._request("DELETE", f"/recipes/notes/{note_id}")

    # --- Tags, files, imports ---

    async def create_tag(self, data: TagCreate) -> ActionResult[TagResponse]:
        return await self._request("POST", "/tags", TagResponse, json=data.model_dump())

    async def upload_image(
        self, bucket: Bucket, filename: str, content: bytes, content_type: str
    ) -> ActionResult[StoredFileResponse]:
        return await self._request(
            "POST",
            f"/storage/{bucket.value}",
            StoredFileResponse,
            files={"file": (filename, content, content_type)},
        )

    async def import_recipe(self, url: str) -> ActionResult[RecipeImportResponse]:
        return await self._request(
            "POST", "/recipes/import", RecipeImportResponse, json={"url": url}
        )

    async def get_import(self, import_id: int) -> ActionResult[RecipeImportResponse]:
        return await self._request("GET", f"/recipes/import/{import_id}", RecipeImportResponse)

    async def confirm_import(
        self, import_id: int, edits: RecipeImportConfirm
    ) -> ActionResult[RecipeCreated]:
        return await self._request(
            "POST",
            f"/recipes/import/{import_id}/confirm",
            RecipeCreated,
            json=edits.model_dump(mode="json", exclude_unset=True),
        )

    # --- helpers ---

    async def _request(
        self,
        method: str,
        path: str,
        model: type[M] | None = None,
        **kwargs: Any,
    ) -> ActionResult[Any]:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else None
        try:
            response = await self.http.request(
                method, f"{API_PREFIX}{path}", headers=headers, **kwargs
            )
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            return Err(str(e) or "NetworkError", ErrorCode.NETWORK_ERROR)

        if response.is_error:
            return Err(
                _error_detail(response),
                code_for_status(response.status_code),
                response.status_code,
            )
        if model is None or response.status_code == 204:
            return Ok(None)
        return Ok(model.model_validate(response.json()))


def _invalid_form(error: Exception) -> Err:
    return Err(str(error), ErrorCode.VALIDATION_ERROR, 422)


def _error_detail(response: httpx.Response) -> str:
    """The server's ``detail`` text, or the status phrase when there is none."""
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list) and detail:
        # Request validation errors: report the first one.
        detail = detail[0].get("msg") if isinstance(detail[0], dict) else str(detail[0])
    if isinstance(detail, str) and detail:
        return detail
    return response.reason_phrase or f"HTTP {response.status_code}"
