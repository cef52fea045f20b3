"""Document construction.

Creation input is validated into a per-kind schema before any entity is
built. Callers may pass either a ready schema or a plain key/value bag; the
bag is validated against the schema selected by the document type.
"""

from collections.abc import Mapping
from datetime import date
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..errors import InvalidCreationParamsError
from .models import Book, Document, Magazine, User
from .schemas import BookCreate, DocumentType, MagazineCreate, UserCreate

DocumentCreate = Union[BookCreate, MagazineCreate]

CREATE_SCHEMAS: dict[DocumentType, type[DocumentCreate]] = {
    DocumentType.BOOK: BookCreate,
    DocumentType.MAGAZINE: MagazineCreate,
}


def _problems(exc: ValidationError) -> list[str]:
    """Flatten a pydantic error into short field messages."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "input"
        problems.append(f"{location}: {err.get('msg', 'invalid value')}")
    return problems


def parse_document_type(value: Union[str, DocumentType]) -> DocumentType:
    """Resolve a document type from its name in any case."""
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(str(value).strip().upper())
    except ValueError:
        raise InvalidCreationParamsError(f"Unsupported document type: {value}") from None


def validate_document_params(
    doc_type: Union[str, DocumentType],
    params: Union[DocumentCreate, Mapping[str, Any], None],
) -> DocumentCreate:
    """Validate creation input for the given document type.

    Args:
        doc_type: Kind of document to create
        params: Per-kind schema or key/value bag

    Returns:
        Validated per-kind schema

    Raises:
        InvalidCreationParamsError: If the type is unknown or input is invalid
    """
    kind = parse_document_type(doc_type)
    schema = CREATE_SCHEMAS[kind]

    if params is None:
        raise InvalidCreationParamsError("Document parameters cannot be empty")

    if isinstance(params, (BookCreate, MagazineCreate)):
        if not isinstance(params, schema):
            raise InvalidCreationParamsError(
                f"{type(params).__name__} does not describe a {kind.value.lower()}"
            )
        return params

    if not isinstance(params, Mapping):
        raise InvalidCreationParamsError("Document parameters must be a mapping")

    try:
        return schema.model_validate(dict(params))
    except ValidationError as e:
        raise InvalidCreationParamsError(
            f"Invalid {kind.value.lower()} parameters", _problems(e)
        ) from e


def build_document(params: DocumentCreate) -> Document:
    """Construct the document variant described by a validated schema."""
    if isinstance(params, BookCreate):
        return Book(
            id=params.id,
            title=params.title,
            author=params.author,
            publication_date=params.publication_date,
            isbn=params.isbn,
            pages=params.pages,
            genre=params.genre,
        )
    return Magazine(
        id=params.id,
        title=params.title,
        author=params.author,
        publication_date=params.publication_date,
        issue_number=params.issue_number,
        publisher=params.publisher,
        frequency=params.frequency,
    )


def create_document(
    doc_type: Union[str, DocumentType],
    params: Union[DocumentCreate, Mapping[str, Any], None],
) -> Document:
    """Validate input and construct a new, available document."""
    return build_document(validate_document_params(doc_type, params))


def validate_user_params(data: Union[UserCreate, Mapping[str, Any]]) -> UserCreate:
    """Validate registration input."""
    if isinstance(data, UserCreate):
        return data
    try:
        return UserCreate.model_validate(dict(data))
    except ValidationError as e:
        raise InvalidCreationParamsError("Invalid user details", _problems(e)) from e


def build_user(data: UserCreate, today: Optional[date] = None) -> User:
    """Construct a user with no loans.

    Args:
        data: Validated user details
        today: Registration date used when the details carry none
    """
    user = User(
        user_id=data.user_id,
        name=data.name,
        email=data.email,
        phone=data.phone,
        user_type=data.user_type,
    )
    registration_date = data.registration_date or today
    if registration_date is not None:
        user.registration_date = registration_date
    return user
