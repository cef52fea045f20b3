"""Flat-file persistence for the catalog registries."""

from .flatfile import FlatFileStore
from .persistence import (
    DOCUMENTS_FILE,
    LOANS_FILE,
    USERS_FILE,
    DataPersistence,
    LoadResult,
)

__all__ = [
    "DOCUMENTS_FILE",
    "LOANS_FILE",
    "USERS_FILE",
    "DataPersistence",
    "FlatFileStore",
    "LoadResult",
]
