"""Tests for the CLI interface."""

import pytest
from typer.testing import CliRunner

from biblioteca.cli import app
from biblioteca.storage import DOCUMENTS_FILE, LOANS_FILE, USERS_FILE


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    """Point the CLI at a fresh data directory."""
    data_dir = tmp_path / "cli-data"
    monkeypatch.setenv("BIBLIOTECA_DATA_DIR", str(data_dir))
    monkeypatch.setenv("BIBLIOTECA_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("BIBLIOTECA_LOAN_DAYS", raising=False)
    monkeypatch.delenv("BIBLIOTECA_LOG_FILE", raising=False)
    return data_dir


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def add_book(runner, doc_id="B001", title="Dune"):
    return runner.invoke(app, [
        "add-book", doc_id, title, "Frank Herbert", "1965-08-01",
        "--isbn", "9780441172719", "--pages", "688", "--genre", "SF",
    ])


def register(runner, user_id="U001", user_type="student"):
    return runner.invoke(app, [
        "register-user", user_id, "Ada Lovelace", "ada@example.com", "5550100123",
        "--type", user_type,
    ])


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "lending catalog" in result.stdout

    def test_version(self, runner: CliRunner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_invalid_config(self, runner: CliRunner, monkeypatch):
        monkeypatch.setenv("BIBLIOTECA_LOAN_DAYS", "0")
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 1
        assert "Loan period must be positive" in result.stdout


class TestCatalogCommands:
    """Tests for document commands."""

    def test_add_book(self, runner: CliRunner, cli_env):
        result = add_book(runner)

        assert result.exit_code == 0
        assert "Added book B001" in result.stdout
        assert (cli_env / DOCUMENTS_FILE).read_text(encoding="utf-8").startswith("BOOK|B001|Dune|")

    def test_add_book_invalid_pages(self, runner: CliRunner):
        result = runner.invoke(app, [
            "add-book", "B001", "Dune", "Frank Herbert", "1965-08-01",
            "--isbn", "1", "--pages", "0", "--genre", "SF",
        ])
        assert result.exit_code == 1
        assert "Invalid details" in result.stdout

    def test_add_duplicate(self, runner: CliRunner):
        add_book(runner)
        result = add_book(runner)
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_add_magazine(self, runner: CliRunner):
        result = runner.invoke(app, [
            "add-magazine", "M001", "Wired", "Various", "2024-05-01",
            "--issue", "32", "--publisher", "Conde Nast", "--frequency", "Monthly",
        ])
        assert result.exit_code == 0
        assert "Added magazine M001" in result.stdout

    def test_documents(self, runner: CliRunner):
        add_book(runner)
        result = runner.invoke(app, ["documents"])
        assert result.exit_code == 0
        assert "B001" in result.stdout

    def test_documents_empty(self, runner: CliRunner):
        result = runner.invoke(app, ["documents", "--available"])
        assert result.exit_code == 0
        assert "No documents found" in result.stdout

    def test_search(self, runner: CliRunner):
        add_book(runner)
        result = runner.invoke(app, ["search", "herbert", "--by", "author"])
        assert result.exit_code == 0
        assert "B001" in result.stdout

    def test_search_no_match(self, runner: CliRunner):
        add_book(runner)
        result = runner.invoke(app, ["search", "tolkien"])
        assert result.exit_code == 0
        assert "No documents match" in result.stdout

    def test_remove_document(self, runner: CliRunner):
        add_book(runner)
        result = runner.invoke(app, ["remove-document", "B001"])
        assert result.exit_code == 0
        assert "Removed document B001" in result.stdout

    def test_remove_missing(self, runner: CliRunner):
        result = runner.invoke(app, ["remove-document", "B404"])
        assert result.exit_code == 1
        assert "was not found" in result.stdout


class TestUserCommands:
    """Tests for user commands."""

    def test_register(self, runner: CliRunner):
        result = register(runner, user_type="teacher")
        assert result.exit_code == 0
        assert "up to 10 loans" in result.stdout

    def test_register_invalid_email(self, runner: CliRunner):
        result = runner.invoke(app, ["register-user", "U001", "Ada", "nope", "5550100123"])
        assert result.exit_code == 1
        assert "Invalid details" in result.stdout

    def test_users(self, runner: CliRunner):
        register(runner)
        result = runner.invoke(app, ["users"])
        assert result.exit_code == 0
        assert "U001" in result.stdout


class TestLoanCommands:
    """Tests for borrow/return commands."""

    def test_borrow_and_return(self, runner: CliRunner, cli_env):
        add_book(runner)
        register(runner)

        borrowed = runner.invoke(app, ["borrow", "U001", "B001"])
        assert borrowed.exit_code == 0
        assert "Loan L0001 created" in borrowed.stdout
        assert "New loan created - User: U001, Document: B001" in borrowed.stdout

        returned = runner.invoke(app, ["return", "L0001"])
        assert returned.exit_code == 0
        assert "Loan L0001 returned" in returned.stdout
        assert "|RETURNED" in (cli_env / LOANS_FILE).read_text(encoding="utf-8")

    def test_borrow_unavailable(self, runner: CliRunner):
        add_book(runner)
        register(runner, "U001")
        register(runner, "U002")
        runner.invoke(app, ["borrow", "U001", "B001"])

        result = runner.invoke(app, ["borrow", "U002", "B001"])

        assert result.exit_code == 1
        assert "not available" in result.stdout

    def test_borrow_unknown_user(self, runner: CliRunner):
        add_book(runner)
        result = runner.invoke(app, ["borrow", "U404", "B001"])
        assert result.exit_code == 1
        assert "User U404 was not found" in result.stdout

    def test_double_return(self, runner: CliRunner):
        add_book(runner)
        register(runner)
        runner.invoke(app, ["borrow", "U001", "B001"])
        runner.invoke(app, ["return", "L0001"])

        result = runner.invoke(app, ["return", "L0001"])

        assert result.exit_code == 1
        assert "already been returned" in result.stdout

    def test_loan_ids_continue_between_runs(self, runner: CliRunner):
        add_book(runner, "B001")
        add_book(runner, "B002", "Dune Messiah")
        register(runner)
        runner.invoke(app, ["borrow", "U001", "B001"])

        result = runner.invoke(app, ["borrow", "U001", "B002"])

        assert "Loan L0002 created" in result.stdout

    def test_loans_empty(self, runner: CliRunner):
        result = runner.invoke(app, ["loans", "--active"])
        assert result.exit_code == 0
        assert "No loans found" in result.stdout


class TestReports:
    """Tests for overdue, stats and check."""

    @pytest.fixture
    def overdue_data(self, cli_env):
        """A catalog with one loan long past due."""
        cli_env.mkdir(parents=True, exist_ok=True)
        (cli_env / DOCUMENTS_FILE).write_text(
            "BOOK|B001|Dune|Frank Herbert|1965-08-01|false|9780441172719|688|SF\n",
            encoding="utf-8",
        )
        (cli_env / USERS_FILE).write_text(
            "U001|Ada|ada@example.com|5550100123|2020-01-01|STUDENT|B001\n", encoding="utf-8"
        )
        (cli_env / LOANS_FILE).write_text(
            "L0001|U001|B001|2020-01-01|2020-01-15||ACTIVE\n", encoding="utf-8"
        )
        return cli_env

    def test_overdue_none(self, runner: CliRunner):
        result = runner.invoke(app, ["overdue"])
        assert result.exit_code == 0
        assert "No overdue loans!" in result.stdout

    def test_overdue(self, runner: CliRunner, overdue_data):
        result = runner.invoke(app, ["overdue"])

        assert result.exit_code == 0
        assert "Overdue Loans: 1" in result.stdout
        assert "|OVERDUE" in (overdue_data / LOANS_FILE).read_text(encoding="utf-8")

    def test_stats(self, runner: CliRunner, overdue_data):
        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "Library Overview" in result.stdout
        assert "Overdue loans" in result.stdout

    def test_check_consistent(self, runner: CliRunner, overdue_data):
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 0
        assert "Catalog consistent" in result.stdout

    def test_check_problems(self, runner: CliRunner, overdue_data):
        with open(overdue_data / LOANS_FILE, "a", encoding="utf-8") as f:
            f.write("L0002|U404|B404|2020-01-01|2020-01-15||ACTIVE\n")

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "problems found" in result.stdout

    def test_stale_holdings_repaired_on_load(self, runner: CliRunner, overdue_data):
        (overdue_data / USERS_FILE).write_text(
            "U001|Ada|ada@example.com|5550100123|2020-01-01|STUDENT|\n", encoding="utf-8"
        )
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 0
        assert "Corrected 1 records" in result.stdout
        assert "Catalog consistent" in result.stdout

    def test_damaged_records_reported(self, runner: CliRunner, overdue_data):
        with open(overdue_data / DOCUMENTS_FILE, "a", encoding="utf-8") as f:
            f.write("BOOK|broken\n")

        result = runner.invoke(app, ["documents"])

        assert result.exit_code == 0
        assert "1 damaged records were skipped" in result.stdout
