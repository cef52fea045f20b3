"""Command-line interface for biblioteca.

Built with Typer for commands and Rich for output. Commands only parse
input, call the lending manager and format results.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .catalog.models import Book, Document, Loan
from .catalog.schemas import DocumentType, LoanStatus, UserType
from .config import get_config
from .errors import LibraryError, user_message_for
from .lending import LendingManager, SearchStrategy, lifecycle
from .logs import setup_logging
from .notify import ConsoleObserver, LoggingObserver
from .storage import DataPersistence

# Create the main app
app = typer.Typer(
    name="biblioteca",
    help="Manage a lending catalog of books and magazines.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")


def get_manager() -> LendingManager:
    """Build a lending manager from configuration."""
    config = get_config()
    problems = config.validate()
    if problems:
        for problem in problems:
            print_error(problem)
        raise typer.Exit(1)

    logger = setup_logging(config.log_level, config.log_file)
    try:
        manager = LendingManager(
            persistence=DataPersistence.in_directory(config.data_dir, logger=logger),
            logger=logger,
            loan_days=config.loan_days,
        )
    except LibraryError as e:
        print_error(user_message_for(e, logger))
        raise typer.Exit(1)

    if manager.load_report.skipped:
        print_warning(f"{manager.load_report.skipped} damaged records were skipped while loading")
    if manager.load_report.repaired:
        print_warning(
            f"Corrected {len(manager.load_report.repaired)} records to match the stored loans"
        )

    manager.notifications.attach(LoggingObserver(logger))
    manager.notifications.attach(ConsoleObserver(console))
    return manager


def fail(manager: LendingManager, error: LibraryError) -> None:
    """Report an engine error and exit."""
    print_error(user_message_for(error, manager.logger))
    raise typer.Exit(1)


def format_status(loan: Loan) -> str:
    """Colored loan status with day counts."""
    status = lifecycle.effective_status(loan)
    if status == LoanStatus.RETURNED:
        return "[dim]returned[/dim]"
    if status == LoanStatus.OVERDUE:
        return f"[bold red]OVERDUE ({lifecycle.days_overdue(loan)}d)[/bold red]"
    return f"[green]active ({lifecycle.days_until_due(loan)}d)[/green]"


def format_document_table(documents: list[Document], title: str = "Documents") -> Table:
    """Create a rich table for displaying documents."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Published")
    table.add_column("Details")
    table.add_column("Status")

    for doc in documents:
        type_badge = "[yellow]BOOK[/yellow]" if isinstance(doc, Book) else "[blue]MAGAZINE[/blue]"
        details = ", ".join(f"{k}: {v}" for k, v in doc.details.items())
        table.add_row(
            doc.id,
            type_badge,
            escape(doc.title),
            escape(doc.author),
            doc.publication_date.isoformat(),
            escape(details),
            "[green]available[/green]" if doc.available else "[red]on loan[/red]",
        )

    return table


def format_loan_table(loans: list[Loan], title: str = "Loans") -> Table:
    """Create a rich table for displaying loans."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("User")
    table.add_column("Document", style="cyan")
    table.add_column("Date")
    table.add_column("Due")
    table.add_column("Returned")
    table.add_column("Status")

    for loan in loans:
        table.add_row(
            loan.loan_id,
            loan.user_id,
            loan.document_id,
            loan.loan_date.isoformat(),
            loan.due_date.isoformat(),
            loan.return_date.isoformat() if loan.return_date else "-",
            format_status(loan),
        )

    return table


# ============================================================================
# Catalog Commands
# ============================================================================


@app.command("add-book")
def add_book(
    document_id: str = typer.Argument(..., help="Document ID"),
    title: str = typer.Argument(..., help="Title"),
    author: str = typer.Argument(..., help="Author"),
    published: str = typer.Argument(..., help="Publication date (YYYY-MM-DD)"),
    isbn: str = typer.Option(..., "--isbn", "-i", help="ISBN"),
    pages: str = typer.Option(..., "--pages", "-p", help="Number of pages"),
    genre: str = typer.Option(..., "--genre", "-g", help="Genre"),
) -> None:
    """Add a book to the catalog."""
    manager = get_manager()
    try:
        book = manager.add_document(DocumentType.BOOK, {
            "id": document_id,
            "title": title,
            "author": author,
            "publication_date": published,
            "isbn": isbn,
            "pages": pages,
            "genre": genre,
        })
    except LibraryError as e:
        fail(manager, e)
    print_success(f"Added book {book.id}: {book.title}")


@app.command("add-magazine")
def add_magazine(
    document_id: str = typer.Argument(..., help="Document ID"),
    title: str = typer.Argument(..., help="Title"),
    author: str = typer.Argument(..., help="Author or editor"),
    published: str = typer.Argument(..., help="Publication date (YYYY-MM-DD)"),
    issue: str = typer.Option(..., "--issue", "-n", help="Issue number"),
    publisher: str = typer.Option(..., "--publisher", "-p", help="Publisher"),
    frequency: str = typer.Option(..., "--frequency", "-f", help="Publication frequency"),
) -> None:
    """Add a magazine issue to the catalog."""
    manager = get_manager()
    try:
        magazine = manager.add_document(DocumentType.MAGAZINE, {
            "id": document_id,
            "title": title,
            "author": author,
            "publication_date": published,
            "issue_number": issue,
            "publisher": publisher,
            "frequency": frequency,
        })
    except LibraryError as e:
        fail(manager, e)
    print_success(f"Added magazine {magazine.id}: {magazine.title}")


@app.command("remove-document")
def remove_document(
    document_id: str = typer.Argument(..., help="Document ID"),
) -> None:
    """Remove a document that is not on loan."""
    manager = get_manager()
    try:
        manager.remove_document(document_id)
    except LibraryError as e:
        fail(manager, e)
    print_success(f"Removed document {document_id}")


@app.command("documents")
def list_documents(
    available: bool = typer.Option(False, "--available", "-a", help="Only documents on the shelf"),
) -> None:
    """List catalog documents."""
    manager = get_manager()
    documents = manager.list_documents(available_only=available)
    if not documents:
        console.print("[dim]No documents found[/dim]")
        return
    console.print(format_document_table(documents))


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text"),
    by: SearchStrategy = typer.Option(SearchStrategy.TITLE, "--by", "-b", help="Field to search"),
) -> None:
    """Search documents by title, author, id, or all of them."""
    manager = get_manager()
    results = manager.search_documents(query, by)
    if not results:
        console.print(f"[dim]No documents match '{escape(query)}'[/dim]")
        return
    console.print(format_document_table(results, title=f"Search: {escape(query)}"))


# ============================================================================
# User Commands
# ============================================================================


@app.command("register-user")
def register_user(
    user_id: str = typer.Argument(..., help="User ID"),
    name: str = typer.Argument(..., help="Full name"),
    email: str = typer.Argument(..., help="Email address"),
    phone: str = typer.Argument(..., help="Phone number"),
    user_type: UserType = typer.Option(UserType.STUDENT, "--type", "-t", help="User type",
                                       case_sensitive=False),
) -> None:
    """Register a borrower."""
    manager = get_manager()
    try:
        user = manager.register_user({
            "user_id": user_id,
            "name": name,
            "email": email,
            "phone": phone,
            "user_type": user_type,
        })
    except LibraryError as e:
        fail(manager, e)
    print_success(f"Registered {user.name} ({user.user_type.value}, up to {user.quota} loans)")


@app.command("users")
def list_users() -> None:
    """List registered users."""
    manager = get_manager()
    users = manager.list_users()
    if not users:
        console.print("[dim]No users registered[/dim]")
        return

    table = Table(title="Users", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email")
    table.add_column("Type")
    table.add_column("Loans", justify="right")

    for user in users:
        table.add_row(
            user.user_id,
            escape(user.name),
            escape(user.email),
            user.user_type.value,
            f"{len(user.current_loans)}/{user.quota}",
        )
    console.print(table)


# ============================================================================
# Loan Commands
# ============================================================================


@app.command()
def borrow(
    user_id: str = typer.Argument(..., help="Borrowing user ID"),
    document_id: str = typer.Argument(..., help="Document ID"),
) -> None:
    """Lend a document to a user."""
    manager = get_manager()
    try:
        loan = manager.create_loan(user_id, document_id)
    except LibraryError as e:
        fail(manager, e)
    print_success(f"Loan {loan.loan_id} created")
    console.print(f"[dim]Due: {loan.due_date.isoformat()}[/dim]")


@app.command("return")
def return_loan(
    loan_id: str = typer.Argument(..., help="Loan ID to return"),
) -> None:
    """Mark a loan as returned."""
    manager = get_manager()
    try:
        loan = manager.return_loan(loan_id)
    except LibraryError as e:
        fail(manager, e)
    print_success(f"Loan {loan.loan_id} returned")


@app.command("loans")
def list_loans(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Only loans of this user"),
    active: bool = typer.Option(False, "--active", "-a", help="Only loans not yet returned"),
) -> None:
    """List loan records."""
    manager = get_manager()
    if user:
        loans = manager.loans_for_user(user)
        if active:
            loans = [loan for loan in loans if not loan.is_returned]
    elif active:
        loans = manager.active_loans()
    else:
        loans = manager.list_loans()

    if not loans:
        console.print("[dim]No loans found[/dim]")
        return
    console.print(format_loan_table(loans))


@app.command()
def overdue() -> None:
    """Show overdue loans and flag them in storage."""
    manager = get_manager()
    try:
        manager.refresh_overdue()
    except LibraryError as e:
        print_warning(user_message_for(e, manager.logger))

    loans = manager.overdue_loans()
    if not loans:
        print_success("No overdue loans!")
        return

    oldest = max(lifecycle.days_overdue(loan) for loan in loans)
    console.print(Panel(
        f"[bold red]Overdue Loans: {len(loans)}[/bold red]\n"
        f"Oldest: {oldest} days overdue",
        style="red",
    ))
    console.print(format_loan_table(loans, title="Overdue"))


# ============================================================================
# Reports
# ============================================================================


@app.command()
def stats() -> None:
    """Show catalog statistics."""
    manager = get_manager()
    summary = manager.statistics()

    table = Table(title="Library Overview", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Total documents", str(summary.total_documents))
    table.add_row("Available documents", str(summary.available_documents))
    table.add_row("Registered users", str(summary.total_users))
    table.add_row("Active loans", str(summary.active_loans))
    table.add_row("Overdue loans", str(summary.overdue_loans))

    console.print(table)


@app.command()
def check() -> None:
    """Check catalog consistency."""
    manager = get_manager()
    report = manager.check_integrity()

    for issue in report.issues:
        style = "red" if issue.severity.value == "error" else "yellow"
        console.print(f"[{style}]{escape(str(issue))}[/{style}]")

    if report.passed:
        print_success(
            f"Catalog consistent ({report.document_count} documents, "
            f"{report.user_count} users, {report.loan_count} loans)"
        )
    else:
        print_error(f"{report.error_count} problems found")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"biblioteca version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
