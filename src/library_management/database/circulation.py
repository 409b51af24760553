"""
Circulation desk: operations that span the Book Store and the Visitor Store.

Borrowing and returning change a copy's status in the Book Store and a
borrow record in the Visitor Store. The two stores persist to separate
files, so the desk fixes the order of the store calls and checks every
precondition before the first mutation. A refused operation changes
neither store.

Between the two stores the following must hold after every operation:
- an UNAVAILABLE copy has exactly one BORROWED record pointing at it, held
  by the visitor named in ``borrow_visitor_id``
- every BORROWED record points at an existing UNAVAILABLE copy
- borrowed copies are never deleted, and visitors with open borrows are
  never deleted

A crash between the two file writes can still break that pairing.
``reconcile`` repairs it from the borrow records and is run when the
stores are first opened.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel, Field

from ..models.book import BookCopy, BookStatus
from ..models.outcome import FailureReason, Outcome
from ..models.visitor import BorrowRecord, Visitor
from ..observability import trace_operation
from .book_store import BookStore
from .visitor_store import VisitorStore

logger = logging.getLogger(__name__)

# Hard limit of simultaneously borrowed copies per visitor
MAX_ACTIVE_BORROWS = 10


class ReconciliationReport(BaseModel):
    """What ``CirculationDesk.reconcile`` had to repair."""

    orphan_records_closed: int = Field(
        default=0,
        description="BORROWED records whose copy no longer exists",
    )
    duplicate_records_closed: int = Field(
        default=0,
        description="Extra BORROWED records claiming an already claimed copy",
    )
    copies_marked_unavailable: int = Field(
        default=0,
        description="Copies set UNAVAILABLE (or re-pointed) to match a BORROWED record",
    )
    copies_released: int = Field(
        default=0,
        description="UNAVAILABLE copies with no BORROWED record, set AVAILABLE",
    )

    @property
    def total_repairs(self) -> int:
        return (
            self.orphan_records_closed
            + self.duplicate_records_closed
            + self.copies_marked_unavailable
            + self.copies_released
        )

    @property
    def changed(self) -> bool:
        return self.total_repairs > 0


class CirculationDesk:
    """
    Composite operations over a ``BookStore`` and a ``VisitorStore``.

    Every operation returns an ``Outcome``; none raises for missing
    entities or refused state changes.
    """

    def __init__(
        self,
        book_store: BookStore,
        visitor_store: VisitorStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.books = book_store
        self.visitors = visitor_store
        self._clock = clock

    @trace_operation("borrow")
    def borrow(self, isbn: str, copy_id: str, visitor_id: int) -> Outcome:
        """Lend copy ``copy_id`` of ``isbn`` to visitor ``visitor_id``."""
        with self.books.lock, self.visitors.lock:
            visitor = self.visitors.find_by_id(visitor_id)
            if visitor is None:
                return self._refuse(FailureReason.NOT_FOUND, f"Visitor {visitor_id} not found")

            if visitor.active_borrow_count >= MAX_ACTIVE_BORROWS:
                return self._refuse(
                    FailureReason.LIMIT_REACHED,
                    f"Visitor {visitor_id} already has {MAX_ACTIVE_BORROWS} books borrowed",
                )

            copy = self.books.find_copy(isbn, copy_id)
            if copy is None:
                return self._refuse(FailureReason.NOT_FOUND, f"Copy {copy_id} of {isbn} not found")
            if not copy.is_available:
                return self._refuse(
                    FailureReason.STATE_CONFLICT, f"Copy {copy_id} is already borrowed"
                )

            if not self.books.borrow(isbn, copy_id, visitor_id):
                return self._refuse(
                    FailureReason.STATE_CONFLICT, f"Copy {copy_id} could not be borrowed"
                )

            # The visitor was resolved above under the same lock
            self.visitors.borrow(isbn, copy_id, visitor_id)

            logger.info("Visitor %s borrowed %s", visitor_id, copy_id)
            return Outcome.success(f"Copy {copy_id} lent to visitor {visitor_id}")

    @trace_operation("return")
    def return_copy(self, isbn: str, copy_id: str) -> Outcome:
        """Take back copy ``copy_id`` of ``isbn`` and close its borrow record."""
        with self.books.lock, self.visitors.lock:
            copy = self.books.find_copy(isbn, copy_id)
            if copy is None:
                return self._refuse(FailureReason.NOT_FOUND, f"Copy {copy_id} of {isbn} not found")
            if copy.is_available:
                return self._refuse(FailureReason.STATE_CONFLICT, f"Copy {copy_id} is not borrowed")

            # Read before the Book Store call; the copy keeps it anyway
            borrower_id = copy.borrow_visitor_id

            if not self.books.return_copy(isbn, copy_id):
                return self._refuse(
                    FailureReason.STATE_CONFLICT, f"Copy {copy_id} could not be returned"
                )

            visitor = self.visitors.find_by_id(borrower_id)
            if visitor is None:
                logger.warning(
                    "Copy %s returned but its borrower %s no longer exists", copy_id, borrower_id
                )
                return Outcome.success(f"Copy {copy_id} returned (no borrower on record)")

            if not self.visitors.return_copy(isbn, copy_id, borrower_id):
                logger.warning("Visitor %s had no open borrow record for %s", borrower_id, copy_id)
                return Outcome.success(f"Copy {copy_id} returned (no open borrow record)")

            logger.info("Visitor %s returned %s", borrower_id, copy_id)
            return Outcome.success(f"Copy {copy_id} returned by visitor {borrower_id}")

    @trace_operation("delete_copy")
    def delete_copy(self, isbn: str, copy_id: str) -> Outcome:
        """Delete a copy that is on the shelf."""
        with self.books.lock:
            copy = self.books.find_copy(isbn, copy_id)
            if copy is None:
                return self._refuse(FailureReason.NOT_FOUND, f"Copy {copy_id} of {isbn} not found")
            if not copy.is_available:
                return self._refuse(
                    FailureReason.STATE_CONFLICT,
                    f"Copy {copy_id} is borrowed and cannot be deleted",
                )

            self.books.delete_copy(isbn, copy_id)
            logger.info("Deleted copy %s", copy_id)
            return Outcome.success(f"Copy {copy_id} deleted")

    @trace_operation("delete_visitor")
    def delete_visitor(self, visitor_id: int) -> Outcome:
        """Delete a visitor who holds no borrowed copies."""
        with self.visitors.lock:
            visitor = self.visitors.find_by_id(visitor_id)
            if visitor is None:
                return self._refuse(FailureReason.NOT_FOUND, f"Visitor {visitor_id} not found")
            if visitor.has_active_borrows:
                return self._refuse(
                    FailureReason.STATE_CONFLICT,
                    f"Visitor {visitor_id} still has {visitor.active_borrow_count} "
                    "books borrowed",
                )

            self.visitors.delete(visitor_id)
            logger.info("Deleted visitor %s", visitor_id)
            return Outcome.success(f"Visitor {visitor_id} deleted")

    @trace_operation("reconcile")
    def reconcile(self) -> ReconciliationReport:
        """
        Rebuild copy status from the BORROWED records of all visitors.

        - A BORROWED record whose copy is gone is closed.
        - When several BORROWED records claim one copy, the claim by the
          copy's ``borrow_visitor_id`` wins (otherwise the earliest) and
          the others are closed.
        - A claimed copy is UNAVAILABLE and points at its claimant.
        - An unclaimed UNAVAILABLE copy goes back to AVAILABLE.

        Only stores that changed are saved.
        """
        report = ReconciliationReport()
        now = self._clock()

        with self.books.lock, self.visitors.lock:
            copies: dict[tuple[str, str], BookCopy] = {}
            for book in self.books.records:
                for copy in book.copies:
                    copies.setdefault((book.isbn, copy.copy_id), copy)

            claims: dict[tuple[str, str], list[tuple[Visitor, BorrowRecord]]] = {}
            for visitor in self.visitors.records:
                for record in visitor.active_records:
                    key = (record.isbn, record.copy_id)
                    if key not in copies:
                        record.mark_returned(now)
                        report.orphan_records_closed += 1
                        logger.warning(
                            "Closed borrow of missing copy %s by visitor %s",
                            record.copy_id,
                            visitor.visitor_id,
                        )
                        continue
                    claims.setdefault(key, []).append((visitor, record))

            for key, claimants in claims.items():
                copy = copies[key]
                holder, kept = self._pick_claim(copy, claimants)

                for visitor, record in claimants:
                    if record is kept:
                        continue
                    record.mark_returned(now)
                    report.duplicate_records_closed += 1
                    logger.warning(
                        "Closed duplicate borrow of %s by visitor %s",
                        record.copy_id,
                        visitor.visitor_id,
                    )

                if copy.is_available or copy.borrow_visitor_id != holder.visitor_id:
                    copy.status = BookStatus.UNAVAILABLE
                    copy.borrow_visitor_id = holder.visitor_id
                    report.copies_marked_unavailable += 1
                    logger.warning(
                        "Marked %s as lent to visitor %s", copy.copy_id, holder.visitor_id
                    )

            for key, copy in copies.items():
                if key not in claims and copy.status == BookStatus.UNAVAILABLE:
                    copy.status = BookStatus.AVAILABLE
                    report.copies_released += 1
                    logger.warning("Released %s, no open borrow record", copy.copy_id)

            if report.copies_marked_unavailable or report.copies_released:
                self.books.save()
            if report.orphan_records_closed or report.duplicate_records_closed:
                self.visitors.save()

        if report.changed:
            logger.info("Reconciliation repaired %d inconsistencies", report.total_repairs)
        return report

    @staticmethod
    def _pick_claim(
        copy: BookCopy, claimants: list[tuple[Visitor, BorrowRecord]]
    ) -> tuple[Visitor, BorrowRecord]:
        for visitor, record in claimants:
            if visitor.visitor_id == copy.borrow_visitor_id:
                return visitor, record
        return min(claimants, key=lambda claim: claim[1].borrow_time)

    @staticmethod
    def _refuse(reason: FailureReason, message: str) -> Outcome:
        logger.info("Refused: %s", message)
        return Outcome.failure(reason, message)
