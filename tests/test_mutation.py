"""Tests for MutationRunner."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.client.mutation import MutationRunner
from src.services.errors import ERROR_MESSAGES
from src.services.notifier import ToastCollector
from src.services.results import Err, ErrorCode, Ok


def returning(result):
    async def action():
        return result

    return action


class TestMutationRunner:
    """Tests for MutationRunner.execute."""

    @pytest.mark.asyncio
    async def test_success_toast_and_callbacks(self):
        toasts = ToastCollector()
        runner = MutationRunner(toasts)
        on_success = MagicMock()
        on_error = MagicMock()
        on_finally = MagicMock()

        succeeded = await runner.execute(
            returning(Ok(7)),
            message_success="Receta creada!",
            on_success=on_success,
            on_error=on_error,
            on_finally=on_finally,
        )

        assert succeeded is True
        assert [(t.level, t.message) for t in toasts.toasts] == [("success", "Receta creada!")]
        on_success.assert_called_once_with(7, Ok(7))
        on_error.assert_not_called()
        on_finally.assert_called_once()
        assert runner.is_loading is False

    @pytest.mark.asyncio
    async def test_success_without_message_shows_nothing(self):
        toasts = ToastCollector()
        assert await MutationRunner(toasts).execute(returning(Ok(None))) is True
        assert toasts.toasts == []

    @pytest.mark.asyncio
    async def test_failure_uses_code_message(self):
        toasts = ToastCollector()
        on_error = MagicMock()

        succeeded = await MutationRunner(toasts).execute(
            returning(Err("Not Found", ErrorCode.NOT_FOUND, 404)), on_error=on_error
        )

        assert succeeded is False
        message = ERROR_MESSAGES[ErrorCode.NOT_FOUND]
        assert toasts.errors == [message]
        on_error.assert_called_once_with(message, ErrorCode.NOT_FOUND, 404, "Not Found")

    @pytest.mark.asyncio
    async def test_failure_without_code_is_translated(self):
        toasts = ToastCollector()
        await MutationRunner(toasts).execute(returning(Err("Invalid login credentials")))
        assert toasts.errors == ["Email o contrasena incorrectos"]

    @pytest.mark.asyncio
    async def test_error_override(self):
        toasts = ToastCollector()
        on_error = MagicMock()
        await MutationRunner(toasts).execute(
            returning(Err("Not Found", ErrorCode.NOT_FOUND, 404)),
            message_error="Error al actualizar like",
            on_error=on_error,
        )
        assert toasts.errors == ["Error al actualizar like"]
        assert on_error.call_args.args[0] == "Error al actualizar like"

    @pytest.mark.asyncio
    async def test_error_toast_can_be_disabled(self):
        toasts = ToastCollector()
        on_error = MagicMock()
        await MutationRunner(toasts).execute(
            returning(Err("Forbidden", ErrorCode.FORBIDDEN, 403)),
            message_error=None,
            on_error=on_error,
        )
        assert toasts.toasts == []
        on_error.assert_called_once_with(
            ERROR_MESSAGES[ErrorCode.FORBIDDEN], ErrorCode.FORBIDDEN, 403, "Forbidden"
        )

    @pytest.mark.asyncio
    async def test_raising_action(self):
        toasts = ToastCollector()
        on_error = MagicMock()
        on_finally = MagicMock()

        async def explode():
            raise RuntimeError("socket closed")

        succeeded = await MutationRunner(toasts).execute(
            explode, on_error=on_error, on_finally=on_finally
        )

        assert succeeded is False
        assert toasts.errors == [ERROR_MESSAGES[ErrorCode.UNKNOWN]]
        on_error.assert_called_once_with(
            ERROR_MESSAGES[ErrorCode.UNKNOWN], ErrorCode.UNKNOWN, 500, "socket closed"
        )
        on_finally.assert_called_once()

    @pytest.mark.asyncio
    async def test_loading_flag_while_running(self):
        runner = MutationRunner(ToastCollector())
        seen = []

        async def action():
            seen.append(runner.is_loading)
            return Ok(None)

        await runner.execute(action, on_finally=lambda: seen.append(runner.is_loading))
        assert seen == [True, False]

    @pytest.mark.asyncio
    async def test_loading_flag_cleared_after_failure(self):
        runner = MutationRunner(ToastCollector())
        seen = []

        async def action():
            seen.append(runner.is_loading)
            return Err("Recipe not found", ErrorCode.NOT_FOUND, 404)

        assert await runner.execute(action) is False
        assert seen == [True]
        assert runner.is_loading is False

    @pytest.mark.asyncio
    async def test_loading_flag_cleared_after_exception(self):
        runner = MutationRunner(ToastCollector())
        seen = []

        async def action():
            seen.append(runner.is_loading)
            raise RuntimeError("socket closed")

        assert await runner.execute(action) is False
        assert seen == [True]
        assert runner.is_loading is False

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self):
        on_success = AsyncMock()
        await MutationRunner(ToastCollector()).execute(returning(Ok("x")), on_success=on_success)
        on_success.assert_awaited_once_with("x", Ok("x"))
