"""
Library Management Models.

This package contains Pydantic models for the entities of the library
data layer:

- BookTitle / BookCopy: catalog entries and their physical copies
- Visitor / BorrowRecord: registered members and their borrow history
- Outcome: success/failure result of store and desk operations

Field aliases keep the persisted JSON layout (camelCase names, enums by
symbolic name) while Python code uses snake_case attributes.
"""

from .book import BookCopy, BookStatus, BookTitle, BookType, Section, copy_number, make_copy_id
from .outcome import FailureReason, Outcome
from .visitor import BorrowRecord, BorrowStatus, Gender, Role, Visitor

__all__ = [
    "BookCopy",
    "BookStatus",
    "BookTitle",
    "BookType",
    "BorrowRecord",
    "BorrowStatus",
    "FailureReason",
    "Gender",
    "Outcome",
    "Role",
    "Section",
    "Visitor",
    "copy_number",
    "make_copy_id",
]
