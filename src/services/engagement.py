"""Likes, bookmarks, notes, and user-created tags."""

import logging

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.models.engagement import Bookmark, Like, RecipeNote
from src.models.taxonomy import Tag
from src.schemas.note import NoteCreate, NoteUpdate
from src.schemas.recipe import BookmarkStatus, LikeStatus
from src.schemas.taxonomy import TagCreate
from src.services.policies import visible_recipes
from src.services.text import generate_slug

logger = logging.getLogger(__name__)

NOTE_EXISTS_MESSAGE = "Ya tienes una nota para esta receta"
NOTE_NOT_OWNED_MESSAGE = "No tienes permiso para modificar esta nota"


class EngagementService:
    """Per-user actions on recipes. Every method acts as ``user_id``."""

    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    # --- Likes ---

    def like(self, recipe_id: int) -> LikeStatus:
        """Like a recipe; liking twice is a no-op."""
        self._require_visible(recipe_id)
        if self._like(recipe_id) is None and self._insert(
            Like(user_id=self.user_id, recipe_id=recipe_id)
        ):
            logger.info(f"User {self.user_id} liked recipe {recipe_id}")
        return self.like_status(recipe_id)

    def unlike(self, recipe_id: int) -> LikeStatus:
        self._require_visible(recipe_id)
        like = self._like(recipe_id)
        if like is not None:
            self.db.delete(like)
            self.db.commit()
        return self.like_status(recipe_id)

    def like_status(self, recipe_id: int) -> LikeStatus:
        count = self.db.query(func.count()).filter(Like.recipe_id == recipe_id).scalar()
        return LikeStatus(
            recipe_id=recipe_id,
            liked=self._like(recipe_id) is not None,
            likes_count=count or 0,
        )

    # --- Bookmarks ---

    def bookmark(self, recipe_id: int) -> BookmarkStatus:
        """Save a recipe; saving twice is a no-op."""
        self._require_visible(recipe_id)
        if self._bookmark(recipe_id) is None and self._insert(
            Bookmark(user_id=self.user_id, recipe_id=recipe_id)
        ):
            logger.info(f"User {self.user_id} bookmarked recipe {recipe_id}")
        return BookmarkStatus(recipe_id=recipe_id, bookmarked=True)

    def unbookmark(self, recipe_id: int) -> BookmarkStatus:
        bookmark = self._bookmark(recipe_id)
        if bookmark is not None:
            self.db.delete(bookmark)
            self.db.commit()
        return BookmarkStatus(recipe_id=recipe_id, bookmarked=False)

    def bookmark_status(self, recipe_id: int) -> BookmarkStatus:
        self._require_visible(recipe_id)
        return BookmarkStatus(recipe_id=recipe_id, bookmarked=self._bookmark(recipe_id) is not None)

    # --- Notes ---

    def create_note(self, recipe_id: int, data: NoteCreate) -> RecipeNote:
        """Attach the user's note to a recipe. One note per user and recipe."""
        self._require_visible(recipe_id)
        if self._note_for(recipe_id) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NOTE_EXISTS_MESSAGE)

        note = RecipeNote(
            user_id=self.user_id,
            recipe_id=recipe_id,
            content=data.content,
            is_private=data.is_private,
        )
        if not self._insert(note):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=NOTE_EXISTS_MESSAGE)
        self.db.refresh(note)
        return note

    def update_note(self, note_id: int, data: NoteUpdate) -> RecipeNote:
        note = self._own_note(note_id)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(note, field, value)
        self.db.commit()
        self.db.refresh(note)
        return note

    def delete_note(self, note_id: int) -> None:
        note = self._own_note(note_id)
        self.db.delete(note)
        self.db.commit()

    # --- Tags ---

    def create_tag(self, data: TagCreate) -> tuple[Tag, bool]:
        """Create a tag, or return the existing one with the same name.

        Returns the tag and whether it was newly created.
        """
        name = data.name.strip()
        slug = generate_slug(name)
        if not name or not slug:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Etiqueta no valida"
            )

        existing = self._matching_tag(name, slug)
        if existing is not None:
            return existing, False

        tag = Tag(name=name, slug=slug, color=data.color)
        if not self._insert(tag):
            # Created by a concurrent request since the lookup above
            existing = self._matching_tag(name, slug)
            if existing is None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT, detail="Etiqueta no valida"
                )
            return existing, False
        self.db.refresh(tag)
        logger.info(f"User {self.user_id} created tag {tag.slug}")
        return tag, True

    # --- helpers ---

    def _insert(self, row) -> bool:
        """Commit a new row; False when a unique key says it already exists."""
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"{type(row).__name__} for user {self.user_id} already existed")
            return False
        return True

    def _matching_tag(self, name: str, slug: str) -> Tag | None:
        return (
            self.db.query(Tag)
            .filter(or_(func.lower(Tag.name) == name.lower(), Tag.slug == slug))
            .first()
        )

    def _require_visible(self, recipe_id: int) -> None:
        exists = (
            visible_recipes(self.db, self.user_id).filter_by(id=recipe_id).first() is not None
        )
        if not exists:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")

    def _like(self, recipe_id: int) -> Like | None:
        return self.db.get(Like, (self.user_id, recipe_id))

    def _note_for(self, recipe_id: int) -> RecipeNote | None:
        return (
            self.db.query(RecipeNote)
            .filter(RecipeNote.user_id == self.user_id, RecipeNote.recipe_id == recipe_id)
            .first()
        )

    def _bookmark(self, recipe_id: int) -> Bookmark | None:
        return (
            self.db.query(Bookmark)
            .filter(Bookmark.user_id == self.user_id, Bookmark.recipe_id == recipe_id)
            .first()
        )

    def _own_note(self, note_id: int) -> RecipeNote:
        note = self.db.get(RecipeNote, note_id)
        if note is None or (note.user_id != self.user_id and note.is_private):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        if note.user_id != self.user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOTE_NOT_OWNED_MESSAGE)
        return note
