"""Loan event fan-out.

Delivery is best-effort: an observer that raises is logged and skipped, and
nothing propagates back to the operation that produced the event.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional


class LoanEventKind(str, Enum):
    """Kinds of lifecycle events."""

    LOAN_CREATED = "loan_created"
    LOAN_RETURNED = "loan_returned"
    LOAN_OVERDUE = "loan_overdue"


@dataclass(frozen=True)
class LoanEvent:
    """A lifecycle event for one loan."""

    kind: LoanEventKind
    loan_id: str
    user_id: str
    document_id: str
    days_overdue: int = 0
    occurred_at: datetime = field(default_factory=datetime.now)

    @property
    def message(self) -> str:
        if self.kind == LoanEventKind.LOAN_CREATED:
            return f"New loan created - User: {self.user_id}, Document: {self.document_id}"
        if self.kind == LoanEventKind.LOAN_RETURNED:
            return f"Document returned - User: {self.user_id}, Document: {self.document_id}"
        return (
            f"OVERDUE - User: {self.user_id}, Document: {self.document_id} "
            f"({self.days_overdue} days overdue)"
        )


Observer = Callable[[LoanEvent], None]


def _observer_name(observer: Observer) -> str:
    return getattr(observer, "name", None) or getattr(
        observer, "__name__", type(observer).__name__
    )


class NotificationHub:
    """Registry of observers receiving loan events."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._observers: list[Observer] = []

    def __len__(self) -> int:
        return len(self._observers)

    def attach(self, observer: Observer) -> None:
        """Register an observer; attaching the same one twice is a no-op."""
        if any(existing is observer for existing in self._observers):
            return
        self._observers.append(observer)
        self.logger.debug("Observer attached: %s", _observer_name(observer))

    def detach(self, observer: Observer) -> bool:
        """Unregister an observer.

        Returns:
            True if it was registered
        """
        for i, existing in enumerate(self._observers):
            if existing is observer:
                del self._observers[i]
                self.logger.debug("Observer detached: %s", _observer_name(observer))
                return True
        return False

    def broadcast(self, event: LoanEvent) -> int:
        """Deliver an event to every observer.

        Returns:
            Number of observers that handled it without error
        """
        delivered = 0
        observers = list(self._observers)
        self.logger.debug("Notifying %d observers: %s", len(observers), event.message)
        for observer in observers:
            try:
                observer(event)
                delivered += 1
            except Exception:
                self.logger.error(
                    "Observer %s failed on %s", _observer_name(observer), event.kind.value,
                    exc_info=True,
                )
        return delivered
