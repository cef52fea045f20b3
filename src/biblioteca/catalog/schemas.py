"""Pydantic schemas for catalog input and reports."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Ids end up as keys in the flat files and inside comma-joined lists
ID_PATTERN = r"^[A-Za-z0-9_-]{1,20}$"
EMAIL_PATTERN = r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"
PHONE_PATTERN = r"^[0-9+\-\s()]{7,20}$"

FORBIDDEN_CHARS = ("|", "\n", "\r")


class DocumentType(str, Enum):
    """Kind of catalog document."""

    BOOK = "BOOK"
    MAGAZINE = "MAGAZINE"


class UserType(str, Enum):
    """Borrower category."""

    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    EXTERNAL = "EXTERNAL"

    @property
    def max_loans(self) -> int:
        """Maximum number of loans held at the same time."""
        return USER_QUOTAS[self]


USER_QUOTAS = {
    UserType.STUDENT: 5,
    UserType.TEACHER: 10,
    UserType.EXTERNAL: 3,
}


class LoanStatus(str, Enum):
    """Status of a loan."""

    ACTIVE = "ACTIVE"
    OVERDUE = "OVERDUE"
    RETURNED = "RETURNED"


class _FlatFileSafe(BaseModel):
    """Base for input that is written to the pipe-delimited store."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("*", mode="after")
    @classmethod
    def no_delimiters(cls, v):
        """Reject characters that would corrupt a stored record."""
        if isinstance(v, str) and any(ch in v for ch in FORBIDDEN_CHARS):
            raise ValueError("must not contain '|' or line breaks")
        return v


def _not_bool(v):
    """Stop pydantic from reading True and False as 1 and 0."""
    if isinstance(v, bool):
        raise ValueError("must be a number, not a boolean")
    return v


class DocumentCreateBase(_FlatFileSafe):
    """Fields shared by every document kind."""

    id: str = Field(..., pattern=ID_PATTERN)
    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=200)
    publication_date: date = Field(..., alias="publicationDate")


class BookCreate(DocumentCreateBase):
    """Schema for adding a book."""

    isbn: str = Field(..., min_length=1, max_length=20)
    pages: int = Field(..., gt=0)
    genre: str = Field(..., min_length=1, max_length=100)

    @field_validator("pages", mode="before")
    @classmethod
    def pages_not_bool(cls, v):
        return _not_bool(v)


class MagazineCreate(DocumentCreateBase):
    """Schema for adding a magazine."""

    issue_number: int = Field(..., gt=0, alias="issueNumber")
    publisher: str = Field(..., min_length=1, max_length=200)
    frequency: str = Field(..., min_length=1, max_length=50)

    @field_validator("issue_number", mode="before")
    @classmethod
    def issue_number_not_bool(cls, v):
        return _not_bool(v)


class UserCreate(_FlatFileSafe):
    """Schema for registering a user."""

    user_id: str = Field(..., pattern=ID_PATTERN, alias="userId")
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=200)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    user_type: UserType = Field(UserType.STUDENT, alias="userType")
    registration_date: Optional[date] = Field(None, alias="registrationDate")

    @field_validator("user_type", mode="before")
    @classmethod
    def normalize_user_type(cls, v):
        """Accept user types in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class LibraryStats(BaseModel):
    """Catalog-wide counters, recomputed on every request."""

    total_documents: int
    available_documents: int
    total_users: int
    active_loans: int
    overdue_loans: int
