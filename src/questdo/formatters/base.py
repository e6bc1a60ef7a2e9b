"""Base formatter protocol."""

from typing import Any, Protocol, runtime_checkable

from questdo.models import Task


@runtime_checkable
class FormatterProtocol(Protocol):
    """Protocol for output formatters.

    Returns a Rich-printable object (Table, str, etc.)
    """

    NAME: str

    def format(self, items: list[Task]) -> Any:
        """Format tasks for output."""
        ...
