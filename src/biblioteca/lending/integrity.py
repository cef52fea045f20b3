"""Catalog consistency checking.

Finds places where the registries disagree with each other, typically after
a snapshot was loaded with skipped lines.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from ..catalog.schemas import LoanStatus
from ..catalog.store import EntityStore
from . import lifecycle


class IssueSeverity(str, Enum):
    """Severity level for integrity issues."""

    WARNING = "warning"
    ERROR = "error"


@dataclass
class IntegrityIssue:
    """An integrity issue found during checking."""

    severity: IssueSeverity
    category: str
    message: str
    entity_id: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.category}: {self.message}"


@dataclass
class IntegrityReport:
    """Report from integrity check."""

    checked_at: str
    document_count: int = 0
    user_count: int = 0
    loan_count: int = 0
    issues: list[IntegrityIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not any(i.severity == IssueSeverity.ERROR for i in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.WARNING)

    def get_issues_by_category(self, category: str) -> list[IntegrityIssue]:
        return [i for i in self.issues if i.category == category]


class IntegrityChecker:
    """Checks invariants binding documents, users and loans."""

    def __init__(self, store: EntityStore, today: Optional[date] = None):
        self.store = store
        self.today = today or date.today()

    def check_all(self) -> IntegrityReport:
        """Run all integrity checks."""
        report = IntegrityReport(
            checked_at=datetime.now().isoformat(),
            document_count=len(self.store.documents),
            user_count=len(self.store.users),
            loan_count=len(self.store.loans),
        )
        report.issues.extend(self._check_loan_references())
        report.issues.extend(self._check_single_outstanding_loan())
        report.issues.extend(self._check_availability())
        report.issues.extend(self._check_user_holdings())
        report.issues.extend(self._check_quotas())
        report.issues.extend(self._check_stale_overdue())
        return report

    def _check_loan_references(self) -> list[IntegrityIssue]:
        issues = []
        for loan in self.store.loans:
            if loan.document_id not in self.store.documents:
                issues.append(IntegrityIssue(
                    IssueSeverity.ERROR, "orphaned_loan",
                    f"Loan {loan.loan_id} references missing document {loan.document_id}",
                    loan.loan_id,
                ))
            if loan.user_id not in self.store.users:
                issues.append(IntegrityIssue(
                    IssueSeverity.ERROR, "orphaned_loan",
                    f"Loan {loan.loan_id} references missing user {loan.user_id}",
                    loan.loan_id,
                ))
        return issues

    def _check_single_outstanding_loan(self) -> list[IntegrityIssue]:
        counts = Counter(
            loan.document_id for loan in self.store.loans if not loan.is_returned
        )
        return [
            IntegrityIssue(
                IssueSeverity.ERROR, "double_loan",
                f"Document {doc_id} has {count} outstanding loans",
                doc_id,
            )
            for doc_id, count in counts.items()
            if count > 1
        ]

    def _check_availability(self) -> list[IntegrityIssue]:
        on_loan = {loan.document_id for loan in self.store.loans if not loan.is_returned}
        issues = []
        for doc in self.store.documents:
            if doc.available and doc.id in on_loan:
                issues.append(IntegrityIssue(
                    IssueSeverity.ERROR, "availability",
                    f"Document {doc.id} is marked available but is on loan",
                    doc.id,
                ))
            elif not doc.available and doc.id not in on_loan:
                issues.append(IntegrityIssue(
                    IssueSeverity.ERROR, "availability",
                    f"Document {doc.id} is marked on loan but has no outstanding loan",
                    doc.id,
                ))
        return issues

    def _check_user_holdings(self) -> list[IntegrityIssue]:
        issues = []
        for user in self.store.users:
            held = {
                loan.document_id
                for loan in self.store.loans
                if loan.user_id == user.user_id and not loan.is_returned
            }
            listed = set(user.current_loans)
            for doc_id in sorted(listed - held):
                issues.append(IntegrityIssue(
                    IssueSeverity.ERROR, "holdings",
                    f"User {user.user_id} lists {doc_id} without an outstanding loan",
                    user.user_id,
                ))
            for doc_id in sorted(held - listed):
                issues.append(IntegrityIssue(
                    IssueSeverity.ERROR, "holdings",
                    f"User {user.user_id} has an outstanding loan of {doc_id} not in their list",
                    user.user_id,
                ))
        return issues

    def _check_quotas(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                IssueSeverity.ERROR, "quota",
                f"User {user.user_id} holds {len(user.current_loans)} loans, "
                f"limit is {user.quota}",
                user.user_id,
            )
            for user in self.store.users
            if len(user.current_loans) > user.quota
        ]

    def _check_stale_overdue(self) -> list[IntegrityIssue]:
        return [
            IntegrityIssue(
                IssueSeverity.WARNING, "stale_status",
                f"Loan {loan.loan_id} is stored as OVERDUE but is not past due",
                loan.loan_id,
            )
            for loan in self.store.loans
            if loan.status == LoanStatus.OVERDUE and not lifecycle.is_overdue(loan, self.today)
        ]
