"""Catalog entities, creation schemas and the entity store."""

from .factory import create_document, validate_document_params
from .models import Book, Document, Loan, Magazine, User
from .schemas import (
    BookCreate,
    DocumentType,
    LibraryStats,
    LoanStatus,
    MagazineCreate,
    UserCreate,
    UserType,
)
from .store import EntityStore, Registry

__all__ = [
    "Book",
    "BookCreate",
    "Document",
    "DocumentType",
    "EntityStore",
    "LibraryStats",
    "Loan",
    "LoanStatus",
    "Magazine",
    "MagazineCreate",
    "Registry",
    "User",
    "UserCreate",
    "UserType",
    "create_document",
    "validate_document_params",
]
