"""
Data storage layer.

The backend is constructed once at application startup (see
``biztrackr.main.lifespan``), kept on ``app.state.storage`` and handed to
request handlers through the ``get_storage`` dependency.
"""

from fastapi import Request

from biztrackr.config import Settings

from .base import StorageBackend, StorageError
from .duckdb_storage import DuckDBStorage


def create_storage(settings: Settings) -> StorageBackend:
    """
    Build the storage backend selected by configuration.

    Currently supports DuckDB only.

    Raises:
        ValueError: If ``db_type`` names an unknown backend
    """
    if settings.db_type != "duckdb":
        raise ValueError(f"Unsupported db_type: {settings.db_type}")
    return DuckDBStorage(db_path=settings.db_path, threads=settings.db_threads)


def get_storage(request: Request) -> StorageBackend:
    """FastAPI dependency returning the application's storage backend."""
    return request.app.state.storage


__all__ = [
    "StorageBackend",
    "StorageError",
    "DuckDBStorage",
    "create_storage",
    "get_storage",
]
