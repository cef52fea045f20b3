"""Built-in loan event observers."""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .hub import LoanEvent, LoanEventKind

EVENT_STYLES = {
    LoanEventKind.LOAN_CREATED: "cyan",
    LoanEventKind.LOAN_RETURNED: "green",
    LoanEventKind.LOAN_OVERDUE: "bold red",
}


class LoggingObserver:
    """Writes every event to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.name = "LoggingObserver"

    def __call__(self, event: LoanEvent) -> None:
        level = logging.WARNING if event.kind == LoanEventKind.LOAN_OVERDUE else logging.INFO
        self.logger.log(level, "[%s] %s", event.loan_id, event.message)


class ConsoleObserver:
    """Prints events to a Rich console."""

    def __init__(self, console: Optional[Console] = None, label: str = "System"):
        self.console = console or Console()
        self.name = f"ConsoleObserver:{label}"
        self.label = label

    def __call__(self, event: LoanEvent) -> None:
        style = EVENT_STYLES.get(event.kind, "white")
        tag = escape(f"[{self.label}]")
        self.console.print(f"[{style}]{tag}[/{style}] {escape(event.message)}")


class EmailObserver:
    """Simulated email delivery: composes the message and logs it."""

    def __init__(self, address: str, logger: Optional[logging.Logger] = None):
        self.address = address
        self.logger = logger or logging.getLogger(__name__)
        self.name = f"EmailObserver:{address}"
        self.outbox: list[str] = []

    def compose(self, event: LoanEvent) -> str:
        return f"To: {self.address}\nSubject: Library Notification\n\n{event.message}"

    def __call__(self, event: LoanEvent) -> None:
        self.outbox.append(self.compose(event))
        self.logger.info("Email notification sent to %s", self.address)
