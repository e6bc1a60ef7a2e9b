"""Persistence backends for questdo state."""

from questdo.backends.base import LoadedState, StateBackend

__all__ = ["LoadedState", "StateBackend"]
