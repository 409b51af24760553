"""
Book models for the Library Management data layer.

A ``BookTitle`` is a catalog entry keyed by ISBN. It exclusively owns an
ordered list of ``BookCopy`` objects, the physical items that are borrowed
and returned one at a time. Copy ids have the form ``"<isbn>-<n>"``; new
copies always take the next number after the largest one still present.

The JSON field names match the persisted ``BookDatabase.json`` layout
(``copyId``, ``borrowVisitorId``, ``type``) through field aliases, so
files written by earlier versions of the application load unchanged.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

_COPY_NUMBER = re.compile(r"[0-9]+")


class BookType(str, Enum):
    """Closed set of catalog categories, persisted by symbolic name."""

    TECHNOLOGY = "TECHNOLOGY"
    SCIENCE = "SCIENCE"
    LITERATURE = "LITERATURE"
    HISTORY = "HISTORY"
    ART = "ART"
    FICTION = "FICTION"

    @property
    def label(self) -> str:
        """Display name, e.g. ``Technology``."""
        return self.value.title()


class Section(str, Enum):
    """Shelf section of the library."""

    S1 = "S1"
    S2 = "S2"
    S3 = "S3"


class BookStatus(str, Enum):
    """Availability of a single copy."""

    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"


def copy_number(copy_id: str) -> int | None:
    """Return the integer suffix of a copy id, or None if it is malformed.

    The suffix is whatever follows the last ``-``. Ids without a numeric
    suffix are tolerated in stored data; they simply never take part in
    numbering.
    """
    suffix = copy_id.rpartition("-")[2]
    if not _COPY_NUMBER.fullmatch(suffix):
        return None
    return int(suffix)


def make_copy_id(isbn: str, number: int) -> str:
    """Build the copy id for copy ``number`` of ``isbn``."""
    return f"{isbn}-{number}"


class BookCopy(BaseModel):
    """
    A physical copy of a book title.

    ``borrow_visitor_id`` is a lookup key back to the visitor who last
    borrowed the copy. It is written on borrow and left in place on
    return.
    """

    copy_id: str = Field(
        ...,
        alias="copyId",
        description="Copy identifier of the form '<isbn>-<n>'",
        min_length=1,
        examples=["9780134685479-1", "I1-3"],
    )

    status: BookStatus = Field(
        default=BookStatus.AVAILABLE,
        description="Whether the copy is on the shelf",
    )

    borrow_visitor_id: int | None = Field(
        default=None,
        alias="borrowVisitorId",
        description="Id of the visitor holding (or who last held) the copy",
    )

    @property
    def is_available(self) -> bool:
        """Check if the copy can be borrowed."""
        return self.status == BookStatus.AVAILABLE

    @property
    def number(self) -> int | None:
        """Integer suffix of the copy id."""
        return copy_number(self.copy_id)

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )


class BookTitle(BaseModel):
    """
    A catalog entry for a book, identified by ISBN.

    The ISBN is the natural key of the Book Store and never changes once
    the title exists. Title, author, type and section are editable.
    """

    title: str = Field(
        ...,
        description="The title of the book",
        examples=["The Great Gatsby", "Structure and Interpretation of Computer Programs"],
    )

    author: str = Field(
        ...,
        description="The author of the book",
        examples=["F. Scott Fitzgerald"],
    )

    isbn: str = Field(
        ...,
        description="ISBN, unique across the catalog",
        min_length=1,
        examples=["9780134685479", "I1"],
    )

    book_type: BookType = Field(
        ...,
        alias="type",
        description="Catalog category",
    )

    section: Section = Field(
        ...,
        description="Shelf section",
    )

    copies: list[BookCopy] = Field(
        default_factory=list,
        description="Physical copies owned by this title, in creation order",
    )

    @classmethod
    def with_copies(
        cls,
        title: str,
        author: str,
        isbn: str,
        book_type: BookType,
        section: Section,
        quantity: int,
    ) -> "BookTitle":
        """Create a title with copies numbered ``isbn-1 .. isbn-quantity``."""
        book = cls(title=title, author=author, isbn=isbn, book_type=book_type, section=section)
        book.add_copies(quantity)
        return book

    @property
    def total_copies(self) -> int:
        """Number of copies owned by the title."""
        return len(self.copies)

    @property
    def available_count(self) -> int:
        """Number of copies currently on the shelf."""
        return sum(1 for copy in self.copies if copy.is_available)

    def next_copy_number(self) -> int:
        """Number for the next new copy: one past the largest valid suffix."""
        numbers = [n for n in (copy.number for copy in self.copies) if n is not None]
        return max(numbers, default=0) + 1

    def add_copies(self, quantity: int) -> list[BookCopy]:
        """Append ``quantity`` fresh AVAILABLE copies and return them."""
        start = self.next_copy_number()
        new_copies = [
            BookCopy(copy_id=make_copy_id(self.isbn, start + offset))
            for offset in range(quantity)
        ]
        self.copies.extend(new_copies)
        return new_copies

    def find_copy(self, copy_id: str) -> BookCopy | None:
        """Return the copy with ``copy_id``, if present."""
        for copy in self.copies:
            if copy.copy_id == copy_id:
                return copy
        return None

    def remove_copy(self, copy_id: str) -> BookCopy | None:
        """Detach and return the copy with ``copy_id``, if present."""
        copy = self.find_copy(copy_id)
        if copy is not None:
            self.copies.remove(copy)
        return copy

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "The Great Gatsby",
                "author": "F. Scott Fitzgerald",
                "isbn": "9780134685479",
                "type": "FICTION",
                "section": "S1",
                "copies": [
                    {"copyId": "9780134685479-1", "status": "AVAILABLE", "borrowVisitorId": None},
                    {"copyId": "9780134685479-2", "status": "UNAVAILABLE", "borrowVisitorId": 1001},
                ],
            }
        },
    )
