"""
Database package for the Library Management data layer.

This package provides:
- JSON file persistence with atomic replacement (json_file.py)
- The Book Store and the Visitor Store (book_store.py, visitor_store.py)
- Cross-store borrow/return/delete operations and startup
  reconciliation (circulation.py)
- Process-wide store accessors (registry.py)
"""

from .base import BaseStore
from .book_store import BookStore
from .circulation import MAX_ACTIVE_BORROWS, CirculationDesk, ReconciliationReport
from .json_file import JsonFileStore
from .registry import (
    get_book_store,
    get_circulation_desk,
    get_visitor_store,
    open_stores,
    reset_stores,
)
from .visitor_store import VISITOR_ID_FLOOR, VisitorStore

__all__ = [
    "MAX_ACTIVE_BORROWS",
    "VISITOR_ID_FLOOR",
    "BaseStore",
    "BookStore",
    "CirculationDesk",
    "JsonFileStore",
    "ReconciliationReport",
    "VisitorStore",
    "get_book_store",
    "get_circulation_desk",
    "get_visitor_store",
    "open_stores",
    "reset_stores",
]
