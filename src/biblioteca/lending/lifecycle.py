"""Loan state transitions.

    ACTIVE ──────────────> RETURNED
      │                       ^
      └──> OVERDUE ───────────┘

Overdue-ness is always derived from the due date; the stored ``OVERDUE``
status is only a lazily refreshed copy kept for listings.
"""

from datetime import date, timedelta
from typing import Optional

from ..catalog.models import Loan
from ..catalog.schemas import LoanStatus
from ..errors import AlreadyReturnedError

DEFAULT_LOAN_DAYS = 14


def due_date_for(loan_date: date, loan_days: int = DEFAULT_LOAN_DAYS) -> date:
    """Due date of a loan starting on ``loan_date``."""
    return loan_date + timedelta(days=loan_days)


def is_overdue(loan: Loan, today: Optional[date] = None) -> bool:
    """Check if a loan is past due and not returned."""
    if loan.status == LoanStatus.RETURNED:
        return False
    return (today or date.today()) > loan.due_date


def effective_status(loan: Loan, today: Optional[date] = None) -> LoanStatus:
    """Status to display, regardless of what is stored."""
    if loan.status == LoanStatus.RETURNED:
        return LoanStatus.RETURNED
    if is_overdue(loan, today):
        return LoanStatus.OVERDUE
    return LoanStatus.ACTIVE


def days_until_due(loan: Loan, today: Optional[date] = None) -> int:
    """Days until due (negative if overdue)."""
    return (loan.due_date - (today or date.today())).days


def days_overdue(loan: Loan, today: Optional[date] = None) -> int:
    """Days overdue (0 if not overdue)."""
    if not is_overdue(loan, today):
        return 0
    return abs(days_until_due(loan, today))


def promote_if_overdue(loan: Loan, today: Optional[date] = None) -> bool:
    """Rewrite a stored ACTIVE status to OVERDUE when past due.

    Returns:
        True if the stored status changed
    """
    if loan.status == LoanStatus.ACTIVE and is_overdue(loan, today):
        loan.status = LoanStatus.OVERDUE
        return True
    return False


def mark_returned(loan: Loan, today: Optional[date] = None) -> Loan:
    """Close a loan.

    Raises:
        AlreadyReturnedError: If the loan is already returned
    """
    if loan.status == LoanStatus.RETURNED:
        raise AlreadyReturnedError(loan.loan_id)
    loan.return_date = today or date.today()
    loan.status = LoanStatus.RETURNED
    return loan


LOAN_ID_PREFIX = "L"


def format_loan_id(sequence: int) -> str:
    """Loan id for a sequence number, e.g. 7 -> L0007."""
    return f"{LOAN_ID_PREFIX}{sequence:04d}"


def parse_loan_sequence(loan_id: str) -> Optional[int]:
    """Sequence number of a loan id, or None if it has another shape."""
    if not loan_id.startswith(LOAN_ID_PREFIX):
        return None
    digits = loan_id[len(LOAN_ID_PREFIX):]
    if not digits.isdigit():
        return None
    return int(digits)
