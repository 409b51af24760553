"""Test configuration and fixtures for the Library Management data layer.

Every test runs against its own temporary data directory:
1. The global configuration points at ``tmp_path``
2. The process-wide stores are forgotten before and after each test
3. Stores built by the fixtures below use a deterministic clock
"""

import os
from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from library_management.config import LibraryConfig, reset_config, set_config
from library_management.database import BookStore, CirculationDesk, VisitorStore, reset_stores
from library_management.models import BookType, Gender, Section, Visitor
from library_management.observability import reset_observability


class FakeClock:
    """Returns strictly increasing timestamps, one minute apart."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


# === Isolation ===


@pytest.fixture(autouse=True)
def isolated_library(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point the global configuration at a fresh directory for each test."""
    for key in list(os.environ):
        if key.startswith("LIBRARY_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)

    reset_config()
    reset_stores()
    reset_observability()
    set_config(LibraryConfig(data_dir=tmp_path, server_name="test-library"))

    yield

    reset_stores()
    reset_config()
    reset_observability()


# === Store Fixtures ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def book_path(tmp_path: Path) -> Path:
    return tmp_path / "BookDatabase.json"


@pytest.fixture
def visitor_path(tmp_path: Path) -> Path:
    return tmp_path / "VisitorDatabase.json"


@pytest.fixture
def book_store(book_path: Path) -> BookStore:
    return BookStore(book_path)


@pytest.fixture
def visitor_store(visitor_path: Path, clock: FakeClock) -> VisitorStore:
    return VisitorStore(visitor_path, clock=clock)


@pytest.fixture
def desk(book_store: BookStore, visitor_store: VisitorStore, clock: FakeClock) -> CirculationDesk:
    return CirculationDesk(book_store, visitor_store, clock=clock)


# === Test Data ===


def make_visitor(username: str = "alice", password: str = "pw", **overrides) -> Visitor:
    """Build an unsaved visitor with a complete profile."""
    fields = {
        "username": username,
        "password": password,
        "full_name": f"{username.title()} Example",
        "gender": Gender.FEMALE,
        "age": 30,
        "phone": "555-0100",
        "address": "1 Library Lane",
    }
    fields.update(overrides)
    return Visitor(**fields)


@pytest.fixture
def stocked_desk(desk: CirculationDesk) -> CirculationDesk:
    """Title I1 with copies I1-1..I1-3 and visitor alice (1001)."""
    desk.books.add("A", "P", "I1", BookType.TECHNOLOGY, Section.S1, 3)
    desk.visitors.add(make_visitor("alice"))
    return desk
