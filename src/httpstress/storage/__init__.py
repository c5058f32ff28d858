from __future__ import annotations

from pathlib import Path

from httpstress.storage.duckdb_store import Storage


def default_storage() -> Storage:
    return Storage(Path(".httpstress/httpstress.duckdb"))


__all__ = ["Storage", "default_storage"]
