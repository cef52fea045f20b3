"""biblioteca - lending catalog engine.

Tracks documents, borrowers and loans, enforces loan quotas and
availability, and keeps the catalog in pipe-delimited text files.
"""

__version__ = "0.1.0"

from .errors import (
    AlreadyReturnedError,
    DuplicateIdError,
    InvalidCreationParamsError,
    LibraryError,
    NotFoundError,
    PersistenceError,
    QuotaExceededError,
    ReferentialIntegrityError,
    UnavailableError,
)
from .lending import LendingManager, SearchStrategy

__all__ = [
    "AlreadyReturnedError",
    "DuplicateIdError",
    "InvalidCreationParamsError",
    "LendingManager",
    "LibraryError",
    "NotFoundError",
    "PersistenceError",
    "QuotaExceededError",
    "ReferentialIntegrityError",
    "SearchStrategy",
    "UnavailableError",
    "__version__",
]
