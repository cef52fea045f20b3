"""Tests for the pipe-delimited record codec."""

from datetime import date

import pytest

from biblioteca.catalog.models import Book, Loan, Magazine, User
from biblioteca.catalog.schemas import DocumentType, LoanStatus, UserType
from biblioteca.errors import MalformedRecordError
from biblioteca.storage.codec import (
    decode_document,
    decode_loan,
    decode_user,
    encode_document,
    encode_loan,
    encode_user,
)


class TestDocuments:
    """Tests for document records."""

    def test_encode_book(self):
        book = Book("B001", "Dune", "Frank Herbert", date(1965, 8, 1),
                    "9780441172719", 688, "Science Fiction", available=False)

        assert encode_document(book) == (
            "BOOK|B001|Dune|Frank Herbert|1965-08-01|false|9780441172719|688|Science Fiction"
        )

    def test_decode_magazine(self):
        magazine = decode_document(
            "MAGAZINE|M001|Wired|Various|2024-05-01|true|32|Conde Nast|Monthly"
        )

        assert isinstance(magazine, Magazine)
        assert magazine.doc_type == DocumentType.MAGAZINE
        assert magazine.issue_number == 32
        assert magazine.available is True

    def test_round_trip(self):
        line = "BOOK|B002|Neuromancer|William Gibson|1984-07-01|true|9780441569595|271|Cyberpunk"
        assert encode_document(decode_document(line)) == line

    @pytest.mark.parametrize("line", [
        "BOOK|B001|Dune",
        "DVD|B001|Dune|Frank Herbert|1965-08-01|true|x|1|y",
        "BOOK|B001|Dune|Frank Herbert|08/01/1965|true|x|1|y",
        "BOOK|B001|Dune|Frank Herbert|1965-08-01|yes|x|1|y",
        "BOOK|B001|Dune|Frank Herbert|1965-08-01|true|x|many|y",
        "BOOK|B001|Dune|Frank Herbert|1965-08-01|true|x|0|y",
        "BOOK||Dune|Frank Herbert|1965-08-01|true|x|1|y",
        "book|B001|Dune|Frank Herbert|1965-08-01|true|x|1|y",
    ])
    def test_malformed(self, line):
        with pytest.raises(MalformedRecordError):
            decode_document(line)


class TestUsers:
    """Tests for user records."""

    def test_encode(self):
        user = User("U001", "Ada", "ada@example.com", "5550100123", UserType.TEACHER,
                    date(2024, 1, 1), ["B001", "B002"])

        assert encode_user(user) == (
            "U001|Ada|ada@example.com|5550100123|2024-01-01|TEACHER|B001,B002"
        )

    def test_decode_no_loans(self):
        user = decode_user("U001|Ada|ada@example.com|5550100123|2024-01-01|STUDENT|")
        assert user.current_loans == []
        assert user.user_type == UserType.STUDENT

    def test_decode_missing_loans_field(self):
        """Test that a record without the trailing loans field is accepted."""
        user = decode_user("U001|Ada|ada@example.com|5550100123|2024-01-01|EXTERNAL")
        assert user.current_loans == []
        assert user.quota == 3

    def test_decode_dedupes_loans(self):
        user = decode_user("U001|Ada|ada@example.com|5550100123|2024-01-01|STUDENT|B1,,B2,B1")
        assert user.current_loans == ["B1", "B2"]

    @pytest.mark.parametrize("line", [
        "U001|Ada",
        "U001|Ada|ada@example.com|5550100123|2024-01-01|ALUMNI|",
        "U001|Ada|ada@example.com|5550100123|soon|STUDENT|",
        "|Ada|ada@example.com|5550100123|2024-01-01|STUDENT|",
    ])
    def test_malformed(self, line):
        with pytest.raises(MalformedRecordError):
            decode_user(line)


class TestLoans:
    """Tests for loan records."""

    def test_encode_active(self):
        loan = Loan("L0001", "U001", "B001", date(2025, 3, 1), date(2025, 3, 15))
        assert encode_loan(loan) == "L0001|U001|B001|2025-03-01|2025-03-15||ACTIVE"

    def test_decode_returned(self):
        loan = decode_loan("L0001|U001|B001|2025-03-01|2025-03-15|2025-03-10|RETURNED")

        assert loan.status == LoanStatus.RETURNED
        assert loan.return_date == date(2025, 3, 10)

    def test_decode_overdue(self):
        loan = decode_loan("L0002|U001|B001|2025-03-01|2025-03-15||OVERDUE")
        assert loan.status == LoanStatus.OVERDUE
        assert loan.return_date is None

    @pytest.mark.parametrize("line", [
        "L0001|U001|B001|2025-03-01|2025-03-15|ACTIVE",
        "L0001|U001|B001|2025-03-01|2025-03-15||LOST",
        "L0001|U001|B001|2025-03-01|2025-03-15||RETURNED",
        "L0001|U001|B001|2025-03-01|2025-03-15|2025-03-10|ACTIVE",
        "L0001||B001|2025-03-01|2025-03-15||ACTIVE",
    ])
    def test_malformed(self, line):
        with pytest.raises(MalformedRecordError):
            decode_loan(line)
