"""Run one mutation with a busy flag, toasts, and lifecycle callbacks.

Usage::

    runner = MutationRunner(notifier)
    saved = await runner.execute(
        lambda: api.create_recipe(form),
        message_success="Receta creada!",
        on_success=lambda created, result: navigate(f"/recipes/{created.id}"),
    )

Pass ``message_error=None`` to suppress the error toast while still getting
``on_error``. The runner does not stop overlapping calls; check
``is_loading`` before starting another one.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from src.services.errors import ERROR_MESSAGES, get_error_message
from src.services.notifier import Notifier
from src.services.results import ActionResult, ErrorCode

logger = logging.getLogger(__name__)

# Distinguishes "no override given" from an explicit ``None`` (toast disabled).
NOT_PROVIDED: Any = object()

ErrorCallback = Callable[[str, ErrorCode | None, int | None, str], Any]


async def _call(callback: Callable[..., Any] | None, *args) -> None:
    if callback is None:
        return
    outcome = callback(*args)
    if inspect.isawaitable(outcome):
        await outcome


class MutationRunner:
    """Executes mutations for a single control (form, toggle, delete button)."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.is_loading = False

    async def execute(
        self,
        action: Callable[[], Awaitable[ActionResult[Any]]],
        message_success: str | None = None,
        message_error: str | None = NOT_PROVIDED,
        on_success: Callable[[Any, ActionResult[Any]], Any] | None = None,
        on_error: ErrorCallback | None = None,
        on_finally: Callable[[], Any] | None = None,
    ) -> bool:
        """Run ``action`` and report the outcome. Returns True on success."""
        toast_errors = message_error is not None
        override = message_error if message_error is not NOT_PROVIDED else None

        self.is_loading = True
        try:
            result = await action()

            if not result.ok:
                message = override or get_error_message(result.message, result.code)
                if toast_errors:
                    self.notifier.error(message)
                await _call(on_error, message, result.code, result.status, result.message)
                return False

            if message_success:
                self.notifier.success(message_success)
            await _call(on_success, result.value, result)
            return True
        except Exception as e:
            logger.error(f"Mutation raised: {e}", exc_info=True)
            message = override or ERROR_MESSAGES[ErrorCode.UNKNOWN]
            if toast_errors:
                self.notifier.error(message)
            await _call(on_error, message, ErrorCode.UNKNOWN, 500, str(e))
            return False
        finally:
            self.is_loading = False
            await _call(on_finally)
