"""Lending engine.

Provides functionality for:
- Lending documents to users within their quota
- Returning loans
- Overdue detection
- Catalog search and statistics
"""

from .integrity import IntegrityChecker, IntegrityIssue, IntegrityReport
from .manager import LendingManager, LoadReport
from .search import SearchStrategy

__all__ = [
    "IntegrityChecker",
    "IntegrityIssue",
    "IntegrityReport",
    "LendingManager",
    "LoadReport",
    "SearchStrategy",
]
