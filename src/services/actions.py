"""Run a named set of independent loaders in parallel and merge their results.

Page endpoints describe what they need as a mapping of action name to
``ActionConfig``::

    outcome = await run_actions(
        {
            "recipe": ActionConfig(lambda _: queries.recipe_detail(recipe_id)),
            "notes": ActionConfig(lambda _: queries.notes(recipe_id), default=[]),
        },
        notifier=toasts,
    )

Every action is awaited to completion. A failed action never prevents its
siblings from reporting; its slot in ``outcome.data`` holds the configured
default and ``outcome.errors`` records why.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from src.services.errors import get_error_message
from src.services.notifier import Notifier
from src.services.results import ActionResult, Err, ErrorCode

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NO_DEFAULT: Any = object()


@dataclass(frozen=True)
class ActionConfig(Generic[T]):
    """A loader plus the value to use when it fails."""

    action: Callable[[Any], Awaitable[ActionResult[T]]]
    default: Any = _NO_DEFAULT

    @property
    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT and self.default is not None


@dataclass(frozen=True)
class ActionError:
    """Why an action failed."""

    message: str
    code: ErrorCode | None = None
    status: int | None = None


@dataclass
class ActionsOutcome:
    """Merged data and per-action errors of one aggregate run."""

    data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, ActionError | None] = field(default_factory=dict)
    params: Any = None

    @property
    def has_errors(self) -> bool:
        return any(error is not None for error in self.errors.values())

    def failed(self, name: str) -> bool:
        return self.errors.get(name) is not None


async def _settle(name: str, config: ActionConfig, params: Any) -> ActionResult:
    try:
        return await config.action(params)
    except Exception as e:
        logger.error(f"Action '{name}' raised unexpectedly: {e}", exc_info=True)
        return Err(str(e) or "Unknown error", ErrorCode.UNKNOWN, 500)


async def run_actions(
    actions: Mapping[str, ActionConfig],
    params: Any = None,
    notifier: Notifier | None = None,
) -> ActionsOutcome:
    """Run all actions concurrently and wait for every one of them to settle.

    There is no timeout or cancellation: a hung action hangs the whole call.
    Each failed action produces exactly one error toast on ``notifier``.
    """
    names = list(actions)
    results = await asyncio.gather(*(_settle(name, actions[name], params) for name in names))

    outcome = ActionsOutcome(params=params)
    for name, result in zip(names, results, strict=True):
        config = actions[name]
        default = config.default if config.has_default else None

        if result.ok:
            outcome.data[name] = result.value if result.value is not None else default
            outcome.errors[name] = None
        else:
            outcome.data[name] = default
            outcome.errors[name] = ActionError(
                message=result.message or "Unknown error",
                code=result.code,
                status=result.status,
            )

    failed = [name for name, error in outcome.errors.items() if error is not None]
    if failed:
        logger.warning(f"{len(failed)} of {len(names)} actions failed: {', '.join(failed)}")
        if notifier is not None:
            for name in failed:
                error = outcome.errors[name]
                notifier.error(get_error_message(error.message, error.code))

    return outcome
