"""Centralized storage path calculation."""

from pathlib import Path

from questdo.config import Config

FILENAMES = {
    "sqlite": "questdo.db",
    "json": "questdo.json",
}


def get_storage_path(config: Config, backend: str, storage_path: Path | None = None) -> Path:
    """Calculate the state file path for a backend.

    Args:
        config: Config instance
        backend: Backend name (sqlite, json, ...)
        storage_path: Explicit storage directory, overrides the config dir

    Returns:
        Path to storage file
    """
    filename = FILENAMES.get(backend, f"questdo.{backend}")
    base = storage_path if storage_path is not None else config.config_dir
    return base / filename
