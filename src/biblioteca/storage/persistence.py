"""Snapshot persistence for the three registries.

Each save rewrites a registry's file in full. Loading is tolerant: lines that
fail to decode are skipped, counted and logged, never fatal.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from ..catalog.models import Document, Loan, User
from ..errors import MalformedRecordError
from .codec import (
    decode_document,
    decode_loan,
    decode_user,
    encode_document,
    encode_loan,
    encode_user,
)
from .flatfile import FlatFileStore

DOCUMENTS_FILE = "documents.txt"
USERS_FILE = "users.txt"
LOANS_FILE = "loans.txt"

T = TypeVar("T")


def _text_of(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRecordError(f"Not valid UTF-8 at byte {e.start}") from None


@dataclass
class LoadResult(Generic[T]):
    """Entities read from one file plus what was dropped."""

    items: list[T] = field(default_factory=list)
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def loaded(self) -> int:
        return len(self.items)


class DataPersistence:
    """Saves and loads documents, users and loans."""

    def __init__(
        self,
        files: FlatFileStore,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize persistence.

        Args:
            files: File store for the data directory
            logger: Logger for load/save diagnostics
        """
        self.files = files
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def in_directory(
        cls,
        data_dir: Path,
        logger: Optional[logging.Logger] = None,
    ) -> "DataPersistence":
        """Create persistence backed by a data directory."""
        return cls(FlatFileStore(data_dir, logger=logger), logger=logger)

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def _save(self, filename: str, entities: list, encode: Callable, kind: str) -> None:
        lines = [encode(entity) for entity in entities]
        self.files.write_lines(filename, lines)
        self.logger.debug("Saved %d %s", len(lines), kind)

    def save_documents(self, documents: list[Document]) -> None:
        self._save(DOCUMENTS_FILE, documents, encode_document, "documents")

    def save_users(self, users: list[User]) -> None:
        self._save(USERS_FILE, users, encode_user, "users")

    def save_loans(self, loans: list[Loan]) -> None:
        self._save(LOANS_FILE, loans, encode_loan, "loans")

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def _load(self, filename: str, decode: Callable[[str], T], kind: str) -> LoadResult[T]:
        result: LoadResult[T] = LoadResult()

        for number, raw in enumerate(self.files.read_lines(filename), start=1):
            if not raw.strip():
                continue
            try:
                result.items.append(decode(_text_of(raw)))
            except MalformedRecordError as e:
                result.skipped += 1
                result.errors.append(f"{filename}:{number}: {e}")
                self.logger.warning(
                    "Skipping malformed %s record at %s:%d (%s)",
                    kind, filename, number, e,
                )

        self.logger.info(
            "Loaded %d %s%s",
            result.loaded,
            kind,
            f" ({result.skipped} skipped)" if result.skipped else "",
        )
        return result

    def load_documents(self) -> LoadResult[Document]:
        return self._load(DOCUMENTS_FILE, decode_document, "documents")

    def load_users(self) -> LoadResult[User]:
        return self._load(USERS_FILE, decode_user, "users")

    def load_loans(self) -> LoadResult[Loan]:
        return self._load(LOANS_FILE, decode_loan, "loans")
