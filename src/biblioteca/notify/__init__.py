"""Loan event notifications."""

from .hub import LoanEvent, LoanEventKind, NotificationHub, Observer
from .observers import ConsoleObserver, EmailObserver, LoggingObserver

__all__ = [
    "ConsoleObserver",
    "EmailObserver",
    "LoanEvent",
    "LoanEventKind",
    "LoggingObserver",
    "NotificationHub",
    "Observer",
]
