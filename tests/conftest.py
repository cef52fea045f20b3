"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the lending engine, including
temporary data directories, a controllable clock and sample catalog data.
"""

import logging
from datetime import date, timedelta
from pathlib import Path

import pytest

from biblioteca.catalog.schemas import BookCreate, MagazineCreate, UserCreate, UserType
from biblioteca.config import reset_config
from biblioteca.lending import LendingManager
from biblioteca.logs import LOGGER_NAME
from biblioteca.notify import NotificationHub
from biblioteca.storage import DataPersistence

TODAY = date(2025, 3, 10)


class FakeClock:
    """Callable date source that tests can move forward."""

    def __init__(self, today: date = TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today += timedelta(days=days)


class RecordingObserver:
    """Observer that keeps every event it receives."""

    def __init__(self):
        self.name = "RecordingObserver"
        self.events = []

    def __call__(self, event) -> None:
        self.events.append(event)

    @property
    def kinds(self):
        return [event.kind for event in self.events]


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Directory for the flat files."""
    return tmp_path / "data"


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("biblioteca_tests")


@pytest.fixture
def persistence(data_dir: Path, logger: logging.Logger) -> DataPersistence:
    return DataPersistence.in_directory(data_dir, logger=logger)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def hub(recorder: RecordingObserver, logger: logging.Logger) -> NotificationHub:
    notifications = NotificationHub(logger=logger)
    notifications.attach(recorder)
    return notifications


@pytest.fixture
def manager(persistence, hub, logger, clock) -> LendingManager:
    """Create a LendingManager over an empty data directory."""
    return LendingManager(
        persistence=persistence,
        notifications=hub,
        logger=logger,
        today=clock,
    )


@pytest.fixture(autouse=True)
def clean_config():
    """Reset global configuration and the package logger around each test."""
    reset_config()
    yield
    reset_config()

    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


def _book_params(doc_id: str = "B001", title: str = "Dune", author: str = "Frank Herbert") -> dict:
    return {
        "id": doc_id,
        "title": title,
        "author": author,
        "publicationDate": "1965-08-01",
        "isbn": "9780441172719",
        "pages": "688",
        "genre": "Science Fiction",
    }


@pytest.fixture
def book_params():
    """Factory for key/value creation bags of books."""
    return _book_params


@pytest.fixture
def sample_book_data() -> BookCreate:
    return BookCreate(
        id="B001",
        title="Dune",
        author="Frank Herbert",
        publication_date=date(1965, 8, 1),
        isbn="9780441172719",
        pages=688,
        genre="Science Fiction",
    )


@pytest.fixture
def sample_magazine_data() -> MagazineCreate:
    return MagazineCreate(
        id="M001",
        title="National Geographic",
        author="Various",
        publication_date=date(2024, 1, 1),
        issue_number=245,
        publisher="National Geographic Society",
        frequency="Monthly",
    )


@pytest.fixture
def sample_user_data() -> UserCreate:
    return UserCreate(
        user_id="U001",
        name="Ada Lovelace",
        email="ada@example.com",
        phone="555-0100 12",
        user_type=UserType.STUDENT,
    )


@pytest.fixture
def sample_user(manager, sample_user_data):
    return manager.register_user(sample_user_data)


@pytest.fixture
def sample_book(manager, sample_book_data):
    return manager.add_document("BOOK", sample_book_data)


@pytest.fixture
def sample_books(manager, book_params):
    """Create several books: B001..B007."""
    titles = [
        ("B001", "Dune", "Frank Herbert"),
        ("B002", "Neuromancer", "William Gibson"),
        ("B003", "Foundation", "Isaac Asimov"),
        ("B004", "Hyperion", "Dan Simmons"),
        ("B005", "Solaris", "Stanislaw Lem"),
        ("B006", "The Dispossessed", "Ursula K. Le Guin"),
        ("B007", "I, Robot", "Isaac Asimov"),
    ]
    return [
        manager.add_document("BOOK", book_params(doc_id, title, author))
        for doc_id, title, author in titles
    ]
