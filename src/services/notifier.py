"""Toast notifications surfaced to the user alongside a response."""

from dataclasses import dataclass, field
from typing import Literal, Protocol


class Notifier(Protocol):
    """Anything that can show a success or error message to the user."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


@dataclass(frozen=True)
class Toast:
    level: Literal["success", "error"]
    message: str


@dataclass
class ToastCollector:
    """Notifier that records toasts so they can be returned with a page."""

    toasts: list[Toast] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.toasts.append(Toast("success", message))

    def error(self, message: str) -> None:
        self.toasts.append(Toast("error", message))

    @property
    def errors(self) -> list[str]:
        return [t.message for t in self.toasts if t.level == "error"]
