"""Tests for optimistic like and bookmark toggles."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.client.mutation import MutationRunner
from src.client.toggle import (
    LOGIN_REQUIRED_TO_LIKE,
    Idle,
    OptimisticToggle,
    Pending,
    Settled,
    Snapshot,
    bookmark_toggle,
    like_toggle,
    toggle_signed_in,
)
from src.schemas.recipe import BookmarkStatus, LikeStatus
from src.services.notifier import ToastCollector
from src.services.results import Err, ErrorCode, Ok


class TestOptimisticToggle:
    """State transitions of OptimisticToggle."""

    def make(self, initial=Snapshot(False, 3), commit=None, **kwargs):
        toasts = ToastCollector()
        toggle = OptimisticToggle(
            initial,
            commit=commit or AsyncMock(return_value=Ok(None)),
            runner=MutationRunner(toasts),
            **kwargs,
        )
        return toggle, toasts

    def test_begin_shows_flipped_value(self):
        toggle, _ = self.make()
        assert isinstance(toggle.state, Idle)

        pending = toggle.begin()
        assert isinstance(pending, Pending)
        assert pending.previous == Snapshot(False, 3)
        assert toggle.current == Snapshot(True, 4)

    def test_count_never_negative(self):
        toggle, _ = self.make(initial=Snapshot(True, 0))
        toggle.begin()
        assert toggle.current == Snapshot(False, 0)

    def test_rollback_restores_previous(self):
        toggle, _ = self.make()
        toggle.begin()
        settled = toggle.rollback()
        assert settled == Settled(Snapshot(False, 3), confirmed=False)

    def test_confirm_adopts_server_count(self):
        toggle, _ = self.make(read_count=lambda status: status.likes_count)
        toggle.begin()
        settled = toggle.confirm(LikeStatus(recipe_id=1, liked=True, likes_count=10))
        assert settled == Settled(Snapshot(True, 10), confirmed=True)

    def test_transitions_out_of_order_raise(self):
        toggle, _ = self.make()
        with pytest.raises(RuntimeError):
            toggle.confirm()
        with pytest.raises(RuntimeError):
            toggle.rollback()
        toggle.begin()
        with pytest.raises(RuntimeError):
            toggle.begin()

    @pytest.mark.asyncio
    async def test_toggle_success(self):
        commit = AsyncMock(return_value=Ok(None))
        toggle, toasts = self.make(commit=commit, message_on="Activado", message_off="Desactivado")

        assert await toggle.toggle() is True
        commit.assert_awaited_once_with(True)
        assert toggle.state == Settled(Snapshot(True, 4), confirmed=True)
        assert toasts.toasts[0].message == "Activado"

        assert await toggle.toggle() is True
        commit.assert_awaited_with(False)
        assert toggle.current == Snapshot(False, 3)
        assert toasts.toasts[1].message == "Desactivado"

    @pytest.mark.asyncio
    async def test_toggle_failure_rolls_back(self):
        commit = AsyncMock(return_value=Err("Internal Server Error", ErrorCode.SERVER_ERROR, 500))
        toggle, toasts = self.make(commit=commit, message_error="Error al actualizar like")

        assert await toggle.toggle() is False
        assert toggle.state == Settled(Snapshot(False, 3), confirmed=False)
        assert toasts.errors == ["Error al actualizar like"]

    @pytest.mark.asyncio
    async def test_toggle_ignored_while_pending(self):
        release = asyncio.Event()

        async def slow_commit(_target):
            await release.wait()
            return Ok(None)

        toggle, _ = self.make(commit=slow_commit)
        first = asyncio.create_task(toggle.toggle())
        await asyncio.sleep(0)
        assert toggle.is_pending

        assert await toggle.toggle() is False

        release.set()
        assert await first is True
        assert toggle.current.active is True


class TestRecipeToggles:
    """like_toggle, bookmark_toggle, and the sign-in guard."""

    @pytest.mark.asyncio
    async def test_like_toggle_uses_server_count(self):
        api = MagicMock()
        api.set_liked = AsyncMock(
            return_value=Ok(LikeStatus(recipe_id=5, liked=True, likes_count=42))
        )
        toasts = ToastCollector()

        toggle = like_toggle(api, toasts, recipe_id=5, liked=False, likes_count=1)
        assert await toggle.toggle() is True

        api.set_liked.assert_awaited_once_with(5, True)
        assert toggle.current == Snapshot(True, 42)
        assert toasts.toasts == []

    @pytest.mark.asyncio
    async def test_like_toggle_failure_message(self):
        api = MagicMock()
        api.set_liked = AsyncMock(return_value=Err("NetworkError", ErrorCode.NETWORK_ERROR))
        toasts = ToastCollector()

        toggle = like_toggle(api, toasts, recipe_id=5, liked=True, likes_count=2)
        await toggle.toggle()

        assert toggle.current == Snapshot(True, 2)
        assert toasts.errors == ["Error al actualizar like"]

    @pytest.mark.asyncio
    async def test_bookmark_toggle_messages(self):
        api = MagicMock()
        api.set_bookmarked = AsyncMock(
            side_effect=[
                Ok(BookmarkStatus(recipe_id=5, bookmarked=True)),
                Ok(BookmarkStatus(recipe_id=5, bookmarked=False)),
            ]
        )
        toasts = ToastCollector()

        toggle = bookmark_toggle(api, toasts, recipe_id=5, bookmarked=False)
        await toggle.toggle()
        await toggle.toggle()

        assert [t.message for t in toasts.toasts] == [
            "Receta guardada",
            "Receta eliminada de guardados",
        ]
        assert toggle.current == Snapshot(False)

    @pytest.mark.asyncio
    async def test_signed_out_viewer_is_asked_to_login(self):
        api = MagicMock()
        api.token = None
        api.set_liked = AsyncMock()
        toasts = ToastCollector()

        toggle = like_toggle(api, toasts, recipe_id=5, liked=False, likes_count=0)
        assert await toggle_signed_in(toggle, api, toasts, LOGIN_REQUIRED_TO_LIKE) is False

        assert toasts.errors == [LOGIN_REQUIRED_TO_LIKE]
        api.set_liked.assert_not_called()
        assert toggle.current == Snapshot(False, 0)
