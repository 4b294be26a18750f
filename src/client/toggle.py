"""Optimistic on/off controls (likes, bookmarks).

A toggle moves through three states::

    Idle(current) --begin--> Pending(previous, current) --confirm--> Settled(current, True)
                                                        --rollback-> Settled(previous, False)

The new value is shown while the write is in flight. A failed write puts
the previous value back. Concurrent tabs are not reconciled: the last write
wins.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Any

from src.client.api import RecipeApiClient
from src.client.mutation import NOT_PROVIDED, MutationRunner
from src.services.notifier import Notifier
from src.services.results import ActionResult

LOGIN_REQUIRED_TO_LIKE = "Debes iniciar sesion para dar like"
LOGIN_REQUIRED_TO_BOOKMARK = "Debes iniciar sesion para guardar recetas"


@dataclass(frozen=True)
class Snapshot:
    """What the control displays."""

    active: bool
    count: int | None = None


@dataclass(frozen=True)
class Idle:
    current: Snapshot


@dataclass(frozen=True)
class Pending:
    previous: Snapshot
    current: Snapshot


@dataclass(frozen=True)
class Settled:
    current: Snapshot
    confirmed: bool


ToggleState = Idle | Pending | Settled


class OptimisticToggle:
    """Flip a flag locally, persist it, and undo the flip if persisting fails."""

    def __init__(
        self,
        initial: Snapshot,
        commit: Callable[[bool], Awaitable[ActionResult[Any]]],
        runner: MutationRunner,
        message_error: str | None = NOT_PROVIDED,
        message_on: str | None = None,
        message_off: str | None = None,
        read_count: Callable[[Any], int | None] | None = None,
    ):
        self.state: ToggleState = Idle(initial)
        self.commit = commit
        self.runner = runner
        self.message_error = message_error
        self.message_on = message_on
        self.message_off = message_off
        self.read_count = read_count

    @property
    def current(self) -> Snapshot:
        return self.state.current

    @property
    def is_pending(self) -> bool:
        return isinstance(self.state, Pending)

    def begin(self) -> Pending:
        """Show the flipped value immediately."""
        if self.is_pending:
            raise RuntimeError("toggle already has a write in flight")
        previous = self.current
        count = previous.count
        if count is not None:
            count = max(0, count + (-1 if previous.active else 1))
        self.state = Pending(previous, Snapshot(not previous.active, count))
        return self.state

    def confirm(self, value: Any = None) -> Settled:
        """Keep the flipped value; adopt the server's count when it sends one."""
        if not isinstance(self.state, Pending):
            raise RuntimeError("no write in flight to confirm")
        current = self.state.current
        if self.read_count is not None and value is not None:
            server_count = self.read_count(value)
            if server_count is not None:
                current = replace(current, count=server_count)
        self.state = Settled(current, confirmed=True)
        return self.state

    def rollback(self) -> Settled:
        """Put back the value shown before the write started."""
        if not isinstance(self.state, Pending):
            raise RuntimeError("no write in flight to roll back")
        self.state = Settled(self.state.previous, confirmed=False)
        return self.state

    async def toggle(self) -> bool:
        """Flip and persist. Ignored (returns False) while a write is in flight."""
        if self.is_pending:
            return False
        pending = self.begin()
        target = pending.current.active
        succeeded = await self.runner.execute(
            lambda: self.commit(target),
            message_success=self.message_on if target else self.message_off,
            message_error=self.message_error,
            on_success=lambda value, _result: self.confirm(value),
            on_error=lambda *_: self.rollback() if self.is_pending else None,
        )
        return succeeded


def like_toggle(
    api: RecipeApiClient,
    notifier: Notifier,
    recipe_id: int,
    liked: bool,
    likes_count: int,
) -> OptimisticToggle:
    return OptimisticToggle(
        Snapshot(liked, likes_count),
        commit=lambda target: api.set_liked(recipe_id, target),
        runner=MutationRunner(notifier),
        message_error="Error al actualizar like",
        read_count=lambda status: status.likes_count,
    )


def bookmark_toggle(
    api: RecipeApiClient,
    notifier: Notifier,
    recipe_id: int,
    bookmarked: bool,
) -> OptimisticToggle:
    return OptimisticToggle(
        Snapshot(bookmarked),
        commit=lambda target: api.set_bookmarked(recipe_id, target),
        runner=MutationRunner(notifier),
        message_error="Error al actualizar guardados",
        message_on="Receta guardada",
        message_off="Receta eliminada de guardados",
    )


async def toggle_signed_in(
    toggle: OptimisticToggle, api: RecipeApiClient, notifier: Notifier, login_message: str
) -> bool:
    """Toggle only when the client holds a session; otherwise ask to sign in."""
    if api.token is None:
        notifier.error(login_message)
        return False
    return await toggle.toggle()
