"""
Read-only views over the stores.

- ``search_catalog``: one row per copy of every title matching a query
- ``borrow_history``: one row per borrow record of a visitor, joined with
  the catalog data of the borrowed title

Both work on plain data and never modify a store.
"""

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from .database.book_store import BookStore
from .models.book import BookStatus, BookTitle, BookType, Section
from .models.visitor import BorrowStatus, Visitor

NOT_RETURNED = "Not returned"


class CatalogRow(BaseModel):
    """One copy of a title, as listed in the catalog table."""

    title: str
    author: str
    isbn: str
    book_type: BookType
    section: Section
    copy_id: str
    status: BookStatus


class BorrowHistoryRow(BaseModel):
    """One borrow episode with the catalog data of its title."""

    title: str
    author: str
    book_type: BookType
    section: Section
    isbn: str
    copy_id: str
    status: BorrowStatus
    borrow_time: datetime
    return_time: datetime | None = Field(default=None)

    @property
    def return_label(self) -> str:
        """Return time as text, or ``Not returned``."""
        if self.return_time is None:
            return NOT_RETURNED
        return self.return_time.isoformat(sep=" ", timespec="seconds")


def matches(book: BookTitle, query: str) -> bool:
    """Case-insensitive substring match on title, author or ISBN."""
    needle = query.strip().lower()
    if not needle:
        return True
    return (
        needle in book.title.lower()
        or needle in book.author.lower()
        or needle in book.isbn.lower()
    )


def search_catalog(titles: Iterable[BookTitle], query: str = "") -> list[CatalogRow]:
    """Flatten matching titles into copy rows, in catalog then copy order."""
    return [
        CatalogRow(
            title=book.title,
            author=book.author,
            isbn=book.isbn,
            book_type=book.book_type,
            section=book.section,
            copy_id=copy.copy_id,
            status=copy.status,
        )
        for book in titles
        if matches(book, query)
        for copy in book.copies
    ]


def borrow_history(visitor: Visitor, book_store: BookStore) -> list[BorrowHistoryRow]:
    """
    The visitor's borrow records, oldest first.

    Records whose title has since left the catalog are skipped.
    """
    rows = []
    for record in visitor.borrow_records:
        book = book_store.find_by_isbn(record.isbn)
        if book is None:
            continue
        rows.append(
            BorrowHistoryRow(
                title=book.title,
                author=book.author,
                book_type=book.book_type,
                section=book.section,
                isbn=record.isbn,
                copy_id=record.copy_id,
                status=record.status,
                borrow_time=record.borrow_time,
                return_time=record.return_time,
            )
        )
    return rows
