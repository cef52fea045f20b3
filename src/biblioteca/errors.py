"""Error kinds raised by the lending engine.

Every error carries a stable, human-readable ``user_message``. Technical
detail (file paths, underlying exceptions) stays in the exception chain and
in the logs; ``user_message_for`` is the single place that turns an
exception into something safe to show at the boundary.
"""

import logging
from typing import Optional


class LibraryError(Exception):
    """Base class for all recoverable engine errors."""

    code: str = "library_error"
    default_message: str = "The operation could not be completed."

    def __init__(self, detail: Optional[str] = None, user_message: Optional[str] = None):
        self.detail = detail or self.default_message
        self.user_message = user_message or self.default_message
        super().__init__(self.detail)


class DuplicateIdError(LibraryError):
    """An entity with the same id already exists."""

    code = "duplicate_id"
    default_message = "An entry with that id already exists."

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(
            f"{kind} with ID {entity_id} already exists",
            f"A {kind.lower()} with ID {entity_id} already exists.",
        )


class NotFoundError(LibraryError):
    """A referenced document, user or loan does not exist."""

    code = "not_found"
    default_message = "The requested entry was not found."

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(
            f"{kind} not found: {entity_id}",
            f"{kind} {entity_id} was not found.",
        )


class ReferentialIntegrityError(LibraryError):
    """The change would break a cross-registry reference."""

    code = "referential_integrity"
    default_message = "That change would leave the catalog inconsistent."


class QuotaExceededError(LibraryError):
    """The user already holds the maximum number of loans."""

    code = "quota_exceeded"
    default_message = "The user has reached the maximum number of loans."

    def __init__(self, user_id: str, quota: int):
        self.user_id = user_id
        self.quota = quota
        super().__init__(
            f"User {user_id} has reached maximum loan limit ({quota})",
            f"User {user_id} has reached the maximum of {quota} loans.",
        )


class UnavailableError(LibraryError):
    """The document is already on loan."""

    code = "unavailable"
    default_message = "The document is not available for loan."

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(
            f"Document {document_id} is already on loan",
            f"Document {document_id} is not available for loan.",
        )


class AlreadyReturnedError(LibraryError):
    """The loan has already been returned."""

    code = "already_returned"
    default_message = "That loan has already been returned."

    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(
            f"Loan {loan_id} already returned",
            f"Loan {loan_id} has already been returned.",
        )


class InvalidCreationParamsError(LibraryError):
    """Construction parameters are missing or malformed."""

    code = "invalid_params"
    default_message = "The supplied details are invalid."

    def __init__(self, detail: str, problems: Optional[list[str]] = None):
        self.problems = problems or [detail]
        super().__init__(detail, f"Invalid details: {'; '.join(self.problems)}")


class PersistenceError(LibraryError):
    """Writing a snapshot failed.

    The in-memory change that triggered the write has already been applied:
    state changed, durability unconfirmed.
    """

    code = "persistence"
    default_message = "The change was applied but could not be saved to disk."


class MalformedRecordError(ValueError):
    """A persisted line could not be decoded. Never leaves the loader."""

    pass


GENERIC_MESSAGE = "An unexpected error occurred. Please try again or contact support."


def user_message_for(exc: BaseException, logger: Optional[logging.Logger] = None) -> str:
    """Log the technical detail of an error and return a safe message.

    Args:
        exc: The exception caught at the boundary
        logger: Logger receiving the technical detail

    Returns:
        Stable, human-readable message
    """
    log = logger or logging.getLogger(__name__)
    if isinstance(exc, LibraryError):
        log.debug("Library error [%s]: %s", exc.code, exc.detail, exc_info=exc)
        return exc.user_message

    log.error("Unexpected error: %s", exc, exc_info=exc)
    return GENERIC_MESSAGE
