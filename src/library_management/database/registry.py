"""
Process-wide store instances.

Front ends share one Book Store, one Visitor Store and one circulation desk
per process. They are opened together on first access, from the locations
in ``LibraryConfig``; the first access also runs reconciliation when
``reconcile_on_startup`` is set and both database files loaded cleanly.
A lock guards the lazy initialisation so
concurrent first touches open the files only once.
"""

import logging
import threading

from ..config import LibraryConfig, get_config
from .book_store import BookStore
from .circulation import CirculationDesk
from .visitor_store import VisitorStore

logger = logging.getLogger(__name__)

_lock = threading.Lock()

# Global desk instance; it owns the two stores
_desk: CirculationDesk | None = None


def open_stores(config: LibraryConfig) -> CirculationDesk:
    """
    Open both stores described by ``config`` and wire a desk to them.

    This does not touch the process-wide instances.
    """
    book_store = BookStore(config.book_database_path, atomic=config.atomic_writes)
    visitor_store = VisitorStore(config.visitor_database_path, atomic=config.atomic_writes)
    desk = CirculationDesk(book_store, visitor_store)

    # Never reconcile against a store that started empty in place of a damaged file
    quarantined = [store.path for store in (book_store, visitor_store) if store.quarantined]
    if config.reconcile_on_startup and quarantined:
        logger.warning(
            "Skipping startup reconciliation, unreadable database files: %s",
            ", ".join(str(path) for path in quarantined),
        )
    elif config.reconcile_on_startup:
        report = desk.reconcile()
        if report.changed:
            logger.warning("Startup reconciliation: %s", report.model_dump())

    return desk


def get_circulation_desk() -> CirculationDesk:
    """Get the global circulation desk, opening the stores on first use."""
    global _desk  # noqa: PLW0603 - Singleton pattern for the stores

    if _desk is None:
        with _lock:
            if _desk is None:
                _desk = open_stores(get_config())

    return _desk


def get_book_store() -> BookStore:
    """Get the global Book Store."""
    return get_circulation_desk().books


def get_visitor_store() -> VisitorStore:
    """Get the global Visitor Store."""
    return get_circulation_desk().visitors


def reset_stores() -> None:
    """Forget the global stores (useful for testing).

    Nothing is written; the next access reloads from disk.
    """
    global _desk  # noqa: PLW0603

    with _lock:
        _desk = None
