"""Lending manager: the only component that mutates the catalog.

Every mutating operation validates first and mutates second, so a failed
check leaves all three registries untouched. A single re-entrant lock covers
validation, mutation and the snapshot write; reads take the same lock so they
never observe a half-applied change.
"""

import copy
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional, TypeVar, Union

from ..catalog.factory import (
    DocumentCreate,
    build_user,
    create_document,
    validate_user_params,
)
from ..catalog.models import Document, Loan, User
from ..catalog.schemas import DocumentType, LibraryStats, UserCreate
from ..catalog.store import EntityStore
from ..errors import QuotaExceededError, UnavailableError
from ..notify.hub import LoanEvent, LoanEventKind, NotificationHub
from ..storage.persistence import DataPersistence, LoadResult
from . import lifecycle
from .integrity import IntegrityChecker, IntegrityReport
from .search import Matcher, SearchStrategy, search

T = TypeVar("T")


@dataclass
class LoadReport:
    """Outcome of loading the stored snapshot."""

    documents: LoadResult = field(default_factory=LoadResult)
    users: LoadResult = field(default_factory=LoadResult)
    loans: LoadResult = field(default_factory=LoadResult)
    duplicate_ids: list[str] = field(default_factory=list)
    repaired: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.documents.skipped + self.users.skipped + self.loans.skipped


class LendingManager:
    """Manages documents, users and loans."""

    def __init__(
        self,
        persistence: Optional[DataPersistence] = None,
        notifications: Optional[NotificationHub] = None,
        logger: Optional[logging.Logger] = None,
        loan_days: int = lifecycle.DEFAULT_LOAN_DAYS,
        today: Callable[[], date] = date.today,
        autoload: bool = True,
    ):
        """Initialize lending manager.

        Args:
            persistence: Snapshot storage (defaults to the configured data dir)
            notifications: Hub receiving loan events
            logger: Logger for operation diagnostics
            loan_days: Loan period in days
            today: Clock returning the current date
            autoload: Load the stored snapshot immediately
        """
        self.logger = logger or logging.getLogger(__name__)
        if persistence is None:
            from ..config import get_config

            persistence = DataPersistence.in_directory(get_config().data_dir, logger=self.logger)
        self.persistence = persistence
        self.notifications = notifications or NotificationHub(logger=self.logger)
        self.loan_days = loan_days
        self._today = today

        self.store = EntityStore()
        self._lock = threading.RLock()
        self._next_sequence = 1
        self.load_report = LoadReport()

        if autoload:
            self.reload()

    # -------------------------------------------------------------------------
    # Snapshot handling
    # -------------------------------------------------------------------------

    def reload(self) -> LoadReport:
        """Replace in-memory state with the stored snapshot.

        Returns:
            LoadReport with loaded and skipped counts
        """
        with self._lock:
            report = LoadReport(
                documents=self.persistence.load_documents(),
                users=self.persistence.load_users(),
                loans=self.persistence.load_loans(),
            )
            report.duplicate_ids += self.store.documents.replace_all(report.documents.items)
            report.duplicate_ids += self.store.users.replace_all(report.users.items)
            report.duplicate_ids += self.store.loans.replace_all(report.loans.items)
            for dup in report.duplicate_ids:
                self.logger.warning("Duplicate id %s in stored data, kept first record", dup)
            report.repaired = self._reconcile_with_loans()

            sequences = [
                seq
                for seq in (lifecycle.parse_loan_sequence(loan.loan_id) for loan in self.store.loans)
                if seq is not None
            ]
            self._next_sequence = max(sequences, default=0) + 1

            self.load_report = report
            self.logger.info(
                "Catalog loaded: %d documents, %d users, %d loans",
                len(self.store.documents), len(self.store.users), len(self.store.loans),
            )
            return report

    def _reconcile_with_loans(self) -> list[str]:
        """Derive availability and holdings from the outstanding loans.

        The loans file is written first, so after an interrupted save it is
        the one to trust.

        Returns:
            Ids of documents and users that were corrected
        """
        repaired = []
        for doc in self.store.documents:
            on_shelf = self.store.outstanding_loan_for(doc.id) is None
            if doc.available != on_shelf:
                doc.available = on_shelf
                repaired.append(doc.id)
                self.logger.warning("Document %s availability corrected to %s", doc.id, on_shelf)

        held: dict[str, list[str]] = {}
        for loan in self.store.loans:
            if not loan.is_returned:
                held.setdefault(loan.user_id, []).append(loan.document_id)
        for user in self.store.users:
            outstanding = held.get(user.user_id, [])
            holdings = [doc_id for doc_id in user.current_loans if doc_id in outstanding]
            holdings += [doc_id for doc_id in outstanding if doc_id not in holdings]
            if holdings != user.current_loans:
                user.current_loans = holdings
                repaired.append(user.user_id)
                self.logger.warning("User %s holdings corrected to %s", user.user_id, holdings)
        return repaired

    def _persist(self, documents: bool = False, users: bool = False, loans: bool = False) -> None:
        # Loans go first; reload() rebuilds the other two from them.
        if loans:
            self.persistence.save_loans(self.store.loans.values())
        if documents:
            self.persistence.save_documents(self.store.documents.values())
        if users:
            self.persistence.save_users(self.store.users.values())

    def _notify(self, event: LoanEvent) -> None:
        self.notifications.broadcast(event)

    @staticmethod
    def _detached(entity: T) -> T:
        """Copy handed to callers so they cannot edit registry state."""
        return copy.deepcopy(entity)

    @property
    def next_loan_id(self) -> str:
        """Id the next loan will receive."""
        return lifecycle.format_loan_id(self._next_sequence)

    # -------------------------------------------------------------------------
    # Document Management
    # -------------------------------------------------------------------------

    def add_document(
        self,
        doc_type: Union[str, DocumentType],
        params: Union[DocumentCreate, Mapping[str, Any]],
    ) -> Document:
        """Add a document to the catalog.

        Args:
            doc_type: Kind of document
            params: Per-kind schema or key/value bag

        Returns:
            Created document

        Raises:
            InvalidCreationParamsError: If the parameters are invalid
            DuplicateIdError: If the id is taken
            PersistenceError: If the snapshot could not be written
        """
        document = create_document(doc_type, params)
        with self._lock:
            self.store.documents.insert(document)
            self.logger.info("Added %s: %s", document.doc_type.value.lower(), document.id)
            self._persist(documents=True)
            return self._detached(document)

    def remove_document(self, document_id: str) -> Document:
        """Remove a document that is not on loan.

        Raises:
            NotFoundError: If the document does not exist
            ReferentialIntegrityError: If it is on loan
            PersistenceError: If the snapshot could not be written
        """
        with self._lock:
            document = self.store.remove_document(document_id)
            self.logger.info("Removed document: %s", document_id)
            self._persist(documents=True)
            return document

    def find_document(self, document_id: str) -> Optional[Document]:
        """Get a document by ID, or None."""
        with self._lock:
            document = self.store.documents.get(document_id)
            return self._detached(document) if document else None

    def list_documents(self, available_only: bool = False) -> list[Document]:
        """List documents, optionally only those on the shelf."""
        with self._lock:
            return [
                self._detached(doc)
                for doc in self.store.documents
                if doc.available or not available_only
            ]

    def search_documents(
        self,
        query: Optional[str],
        strategy: Union[SearchStrategy, Matcher] = SearchStrategy.TITLE,
    ) -> list[Document]:
        """Search documents with the given strategy.

        Args:
            query: Search text; blank yields no results
            strategy: Built-in strategy or custom matcher

        Returns:
            Matching documents
        """
        with self._lock:
            return [self._detached(doc) for doc in search(self.store.documents, query, strategy)]

    # -------------------------------------------------------------------------
    # User Management
    # -------------------------------------------------------------------------

    def register_user(self, data: Union[UserCreate, Mapping[str, Any]]) -> User:
        """Register a new user.

        Raises:
            InvalidCreationParamsError: If the details are invalid
            DuplicateIdError: If the user id is taken
            PersistenceError: If the snapshot could not be written
        """
        user = build_user(validate_user_params(data), today=self._today())
        with self._lock:
            self.store.users.insert(user)
            self.logger.info("Registered user: %s (%s)", user.user_id, user.user_type.value)
            self._persist(users=True)
            return self._detached(user)

    def find_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID, or None."""
        with self._lock:
            user = self.store.users.get(user_id)
            return self._detached(user) if user else None

    def list_users(self) -> list[User]:
        with self._lock:
            return [self._detached(user) for user in self.store.users]

    # -------------------------------------------------------------------------
    # Loan Management
    # -------------------------------------------------------------------------

    def create_loan(self, user_id: str, document_id: str) -> Loan:
        """Lend a document to a user.

        Args:
            user_id: Borrower
            document_id: Document to lend

        Returns:
            Created loan

        Raises:
            NotFoundError: If the user or document does not exist
            QuotaExceededError: If the user is at their loan limit
            UnavailableError: If the document is already on loan
            PersistenceError: If the snapshot could not be written
        """
        with self._lock:
            user = self.store.users.require(user_id)
            document = self.store.documents.require(document_id)

            if not user.can_borrow:
                raise QuotaExceededError(user_id, user.quota)
            if not document.available or self.store.outstanding_loan_for(document_id):
                raise UnavailableError(document_id)

            loan_date = self._today()
            loan = Loan(
                loan_id=lifecycle.format_loan_id(self._next_sequence),
                user_id=user_id,
                document_id=document_id,
                loan_date=loan_date,
                due_date=lifecycle.due_date_for(loan_date, self.loan_days),
            )
            self.store.loans.insert(loan)
            self._next_sequence += 1
            document.available = False
            user.current_loans.append(document_id)

            self.logger.info("Created loan: %s (%s -> %s)", loan.loan_id, document_id, user_id)
            event = LoanEvent(LoanEventKind.LOAN_CREATED, loan.loan_id, user_id, document_id)
            try:
                self._persist(documents=True, users=True, loans=True)
            finally:
                self._notify(event)
            return self._detached(loan)

    def return_loan(self, loan_id: str) -> Loan:
        """Close a loan and put the document back on the shelf.

        Raises:
            NotFoundError: If the loan does not exist
            AlreadyReturnedError: If it was already returned
            PersistenceError: If the snapshot could not be written
        """
        with self._lock:
            loan = self.store.loans.require(loan_id)
            document = self.store.documents.get(loan.document_id)
            user = self.store.users.get(loan.user_id)

            lifecycle.mark_returned(loan, self._today())
            if document is not None:
                document.available = True
            else:
                self.logger.warning("Returned loan %s references missing document %s",
                                    loan_id, loan.document_id)
            if user is not None:
                if loan.document_id in user.current_loans:
                    user.current_loans.remove(loan.document_id)
            else:
                self.logger.warning("Returned loan %s references missing user %s",
                                    loan_id, loan.user_id)

            self.logger.info("Returned loan: %s", loan_id)
            event = LoanEvent(LoanEventKind.LOAN_RETURNED, loan_id, loan.user_id, loan.document_id)
            try:
                self._persist(documents=True, users=True, loans=True)
            finally:
                self._notify(event)
            return self._detached(loan)

    def refresh_overdue(self) -> list[Loan]:
        """Promote stored status of past-due loans to OVERDUE.

        Emits one overdue event per loan that changed.

        Returns:
            Loans whose stored status changed
        """
        with self._lock:
            today = self._today()
            promoted = [
                loan for loan in self.store.loans if lifecycle.promote_if_overdue(loan, today)
            ]
            if not promoted:
                return []

            self.logger.info("Marked %d loans overdue", len(promoted))
            try:
                self._persist(loans=True)
            finally:
                for loan in promoted:
                    self._notify(LoanEvent(
                        LoanEventKind.LOAN_OVERDUE,
                        loan.loan_id,
                        loan.user_id,
                        loan.document_id,
                        days_overdue=lifecycle.days_overdue(loan, today),
                    ))
            return [self._detached(loan) for loan in promoted]

    def find_loan(self, loan_id: str) -> Optional[Loan]:
        """Get a loan by ID, or None."""
        with self._lock:
            loan = self.store.loans.get(loan_id)
            return self._detached(loan) if loan else None

    def list_loans(self) -> list[Loan]:
        with self._lock:
            return [self._detached(loan) for loan in self.store.loans]

    def active_loans(self) -> list[Loan]:
        """Loans not yet returned, overdue ones included."""
        with self._lock:
            return [self._detached(loan) for loan in self.store.loans if not loan.is_returned]

    def overdue_loans(self) -> list[Loan]:
        """Loans past due, judged by date rather than stored status."""
        with self._lock:
            today = self._today()
            return [
                self._detached(loan)
                for loan in self.store.loans
                if lifecycle.is_overdue(loan, today)
            ]

    def loans_for_user(self, user_id: str) -> list[Loan]:
        """All loans, past and present, of a user."""
        with self._lock:
            return [
                self._detached(loan) for loan in self.store.loans if loan.user_id == user_id
            ]

    # -------------------------------------------------------------------------
    # Statistics and Reports
    # -------------------------------------------------------------------------

    def statistics(self) -> LibraryStats:
        """Get catalog counters, computed fresh."""
        with self._lock:
            today = self._today()
            outstanding = [loan for loan in self.store.loans if not loan.is_returned]
            return LibraryStats(
                total_documents=len(self.store.documents),
                available_documents=sum(1 for doc in self.store.documents if doc.available),
                total_users=len(self.store.users),
                active_loans=len(outstanding),
                overdue_loans=sum(1 for loan in outstanding if lifecycle.is_overdue(loan, today)),
            )

    def check_integrity(self) -> IntegrityReport:
        """Check cross-registry consistency of the current state."""
        with self._lock:
            return IntegrityChecker(self.store, self._today()).check_all()
