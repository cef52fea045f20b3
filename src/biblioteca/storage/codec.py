"""Pipe-delimited record encoding.

    documents: type|id|title|author|publicationDate|available|<3 kind fields>
    users:     userId|name|email|phone|registrationDate|userType|docId,docId
    loans:     loanId|userId|documentId|loanDate|dueDate|returnDate|status

Decoders raise ``MalformedRecordError`` for anything they cannot read.
"""

from datetime import date
from enum import Enum
from typing import Optional, TypeVar

from ..catalog.models import Book, Document, Loan, Magazine, User
from ..catalog.schemas import DocumentType, LoanStatus, UserType
from ..errors import MalformedRecordError

DELIMITER = "|"
LIST_DELIMITER = ","

DOCUMENT_FIELDS = 9
USER_FIELDS = 7
LOAN_FIELDS = 7

E = TypeVar("E", bound=Enum)


def _split(line: str, expected: int, kind: str) -> list[str]:
    parts = line.split(DELIMITER)
    if len(parts) != expected:
        raise MalformedRecordError(
            f"{kind} record has {len(parts)} fields, expected {expected}"
        )
    return parts


def _date(value: str, field_name: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise MalformedRecordError(f"Bad {field_name} date: {value!r}") from None


def _optional_date(value: str, field_name: str) -> Optional[date]:
    return _date(value, field_name) if value else None


def _int(value: str, field_name: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise MalformedRecordError(f"Bad {field_name}: {value!r}") from None
    if number <= 0:
        raise MalformedRecordError(f"{field_name} must be positive: {number}")
    return number


def _bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered not in ("true", "false"):
        raise MalformedRecordError(f"Bad boolean: {value!r}")
    return lowered == "true"


def _enum(enum_cls: type[E], value: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise MalformedRecordError(f"Unknown {enum_cls.__name__}: {value!r}") from None


def _text(value: str, field_name: str) -> str:
    if not value:
        raise MalformedRecordError(f"Empty {field_name}")
    return value


# ============================================================================
# Documents
# ============================================================================


def encode_document(doc: Document) -> str:
    head = [
        doc.doc_type.value,
        doc.id,
        doc.title,
        doc.author,
        doc.publication_date.isoformat(),
        "true" if doc.available else "false",
    ]
    if isinstance(doc, Book):
        tail = [doc.isbn, str(doc.pages), doc.genre]
    else:
        tail = [str(doc.issue_number), doc.publisher, doc.frequency]
    return DELIMITER.join(head + tail)


def decode_document(line: str) -> Document:
    parts = _split(line, DOCUMENT_FIELDS, "Document")
    doc_type = _enum(DocumentType, parts[0])
    common = dict(
        id=_text(parts[1], "id"),
        title=parts[2],
        author=parts[3],
        publication_date=_date(parts[4], "publication"),
        available=_bool(parts[5]),
    )
    if doc_type == DocumentType.BOOK:
        return Book(
            **common,
            isbn=parts[6],
            pages=_int(parts[7], "pages"),
            genre=parts[8],
        )
    return Magazine(
        **common,
        issue_number=_int(parts[6], "issue number"),
        publisher=parts[7],
        frequency=parts[8],
    )


# ============================================================================
# Users
# ============================================================================


def encode_user(user: User) -> str:
    return DELIMITER.join([
        user.user_id,
        user.name,
        user.email,
        user.phone,
        user.registration_date.isoformat(),
        user.user_type.value,
        LIST_DELIMITER.join(user.current_loans),
    ])


def decode_user(line: str) -> User:
    # The loans field may be missing entirely when the user holds nothing
    if line.count(DELIMITER) == USER_FIELDS - 2:
        line += DELIMITER
    parts = _split(line, USER_FIELDS, "User")

    current_loans: list[str] = []
    for doc_id in parts[6].split(LIST_DELIMITER):
        if doc_id and doc_id not in current_loans:
            current_loans.append(doc_id)

    return User(
        user_id=_text(parts[0], "user id"),
        name=parts[1],
        email=parts[2],
        phone=parts[3],
        registration_date=_date(parts[4], "registration"),
        user_type=_enum(UserType, parts[5]),
        current_loans=current_loans,
    )


# ============================================================================
# Loans
# ============================================================================


def encode_loan(loan: Loan) -> str:
    return DELIMITER.join([
        loan.loan_id,
        loan.user_id,
        loan.document_id,
        loan.loan_date.isoformat(),
        loan.due_date.isoformat(),
        loan.return_date.isoformat() if loan.return_date else "",
        loan.status.value,
    ])


def decode_loan(line: str) -> Loan:
    parts = _split(line, LOAN_FIELDS, "Loan")
    loan = Loan(
        loan_id=_text(parts[0], "loan id"),
        user_id=_text(parts[1], "user id"),
        document_id=_text(parts[2], "document id"),
        loan_date=_date(parts[3], "loan"),
        due_date=_date(parts[4], "due"),
        return_date=_optional_date(parts[5], "return"),
        status=_enum(LoanStatus, parts[6]),
    )
    if (loan.status == LoanStatus.RETURNED) != (loan.return_date is not None):
        raise MalformedRecordError(
            f"Loan {loan.loan_id} status {loan.status.value} disagrees with return date"
        )
    return loan
