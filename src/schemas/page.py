"""Aggregated page response schema."""

from typing import Any

from pydantic import BaseModel

from src.services.actions import ActionsOutcome
from src.services.notifier import ToastCollector


class ActionErrorResponse(BaseModel):
    message: str
    code: str | None = None
    status: int | None = None


class ToastResponse(BaseModel):
    level: str
    message: str


class PageResponse(BaseModel):
    """Everything a screen needs, plus what failed while loading it."""

    page: str
    data: dict[str, Any]
    errors: dict[str, ActionErrorResponse | None]
    toasts: list[ToastResponse] = []

    @classmethod
    def from_outcome(
        cls, page: str, outcome: ActionsOutcome, toasts: ToastCollector
    ) -> "PageResponse":
        return cls(
            page=page,
            data=outcome.data,
            errors={
                name: None
                if error is None
                else ActionErrorResponse(
                    message=error.message,
                    code=error.code.value if error.code else None,
                    status=error.status,
                )
                for name, error in outcome.errors.items()
            },
            toasts=[ToastResponse(level=t.level, message=t.message) for t in toasts.toasts],
        )
