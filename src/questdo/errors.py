"""Exceptions raised by the questdo engine.

All of them leave tasks and player status unchanged; callers decide how to
surface them.
"""

from __future__ import annotations

from typing import Any


class QuestError(Exception):
    """Base questdo exception."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailed(QuestError):
    """Invalid or missing field value."""


class ResourceExhausted(QuestError):
    """HP is depleted, so no new commitments are accepted."""

    def __init__(self, current_hp: int):
        super().__init__(
            "Not enough HP to take on new tasks. Complete a recovery task first.",
            details={"current_hp": current_hp},
        )


class PreconditionFailed(QuestError):
    """Operation not allowed in the task's current state."""


class NotFound(QuestError, LookupError):
    """Unknown task or parent id."""

    def __init__(self, resource: str, resource_id: str):
        self.resource_id = resource_id
        super().__init__(
            f"{resource} not found: {resource_id}",
            details={"resource": resource, "id": resource_id},
        )


class PersistenceError(QuestError):
    """Backend could not read or write state."""
