"""Catalog entities.

Documents are a closed set of variants: ``Book`` and ``Magazine`` are
separate dataclasses tagged by ``doc_type``, and ``Document`` is their union.
Entities reference each other by id only.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import ClassVar, Optional, Union

from .schemas import DocumentType, LoanStatus, UserType


@dataclass
class Book:
    """A book in the catalog."""

    doc_type: ClassVar[DocumentType] = DocumentType.BOOK

    id: str
    title: str
    author: str
    publication_date: date
    isbn: str
    pages: int
    genre: str
    available: bool = True

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', available={self.available})>"

    @property
    def details(self) -> dict[str, str]:
        """Type-specific fields for display."""
        return {"ISBN": self.isbn, "Pages": str(self.pages), "Genre": self.genre}


@dataclass
class Magazine:
    """A magazine issue in the catalog."""

    doc_type: ClassVar[DocumentType] = DocumentType.MAGAZINE

    id: str
    title: str
    author: str
    publication_date: date
    issue_number: int
    publisher: str
    frequency: str
    available: bool = True

    def __repr__(self) -> str:
        return f"<Magazine(id={self.id}, title='{self.title}', available={self.available})>"

    @property
    def details(self) -> dict[str, str]:
        """Type-specific fields for display."""
        return {
            "Issue": str(self.issue_number),
            "Publisher": self.publisher,
            "Frequency": self.frequency,
        }


Document = Union[Book, Magazine]


@dataclass
class User:
    """A registered borrower."""

    user_id: str
    name: str
    email: str
    phone: str
    user_type: UserType
    registration_date: date = field(default_factory=date.today)
    current_loans: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"<User(id={self.user_id}, name='{self.name}', "
            f"loans={len(self.current_loans)}/{self.quota})>"
        )

    @property
    def id(self) -> str:
        return self.user_id

    @property
    def quota(self) -> int:
        """Maximum concurrent loans for this user's type."""
        return self.user_type.max_loans

    @property
    def can_borrow(self) -> bool:
        """Check if the user is below quota."""
        return len(self.current_loans) < self.quota


@dataclass
class Loan:
    """A loan of one document to one user."""

    loan_id: str
    user_id: str
    document_id: str
    loan_date: date
    due_date: date
    return_date: Optional[date] = None
    status: LoanStatus = LoanStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<Loan(id={self.loan_id}, user={self.user_id}, "
            f"document={self.document_id}, status={self.status.value})>"
        )

    @property
    def id(self) -> str:
        return self.loan_id

    @property
    def is_returned(self) -> bool:
        return self.status == LoanStatus.RETURNED
