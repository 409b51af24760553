"""
Visitor Store: registered visitors and their borrow histories.

Visitor ids are allocated as one more than the largest id currently in the
store, never below ``VISITOR_ID_FLOOR + 1``. Deleting the visitor with the
highest id therefore frees that id for the next registration.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..models.visitor import BorrowRecord, Visitor
from .base import BaseStore

logger = logging.getLogger(__name__)

# The first registered visitor gets VISITOR_ID_FLOOR + 1
VISITOR_ID_FLOOR = 1000


class VisitorStore(BaseStore[Visitor]):
    """
    File-backed collection of ``Visitor`` records.

    ``clock`` supplies borrow and return timestamps.
    """

    model = Visitor

    def __init__(
        self,
        path: Path,
        atomic: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._clock = clock
        super().__init__(path, atomic=atomic)

    def next_visitor_id(self) -> int:
        with self.lock:
            ids = [v.visitor_id for v in self._records if v.visitor_id is not None]
            return max([VISITOR_ID_FLOOR, *ids]) + 1

    def add(self, visitor: Visitor) -> bool:
        """
        Register ``visitor``, assigning its ``visitor_id`` in place.

        Returns:
            False (and no change) if the username is already taken
        """
        with self.lock:
            if self._username_holder(visitor.username) is not None:
                logger.info("Username %r is already registered", visitor.username)
                return False

            visitor.visitor_id = self.next_visitor_id()
            self._records.append(visitor)
            self._usernames[visitor.visitor_id] = visitor.username
            logger.debug("Registered visitor %s (%s)", visitor.visitor_id, visitor.username)

            self._persist()
            return True

    def edit(self, visitor: Visitor) -> bool:
        """Replace the stored visitor that has the same ``visitor_id``."""
        with self.lock:
            index = self._index_of(visitor.visitor_id)
            if index is None:
                logger.info("Cannot edit unknown visitor %s", visitor.visitor_id)
                return False

            holder_id = self._username_holder(visitor.username)
            if holder_id is not None and holder_id != visitor.visitor_id:
                logger.info(
                    "Cannot edit visitor %s: username %r belongs to visitor %s",
                    visitor.visitor_id,
                    visitor.username,
                    holder_id,
                )
                # The caller may have renamed the live record before asking
                if self._records[index] is visitor:
                    visitor.username = self._usernames[visitor.visitor_id]
                return False

            self._records[index] = visitor
            self._usernames[visitor.visitor_id] = visitor.username
            logger.debug("Edited visitor %s", visitor.visitor_id)

            self._persist()
            return True

    def delete(self, visitor_id: int) -> bool:
        """Remove a visitor. Active borrows are not checked here."""
        with self.lock:
            index = self._index_of(visitor_id)
            if index is None:
                logger.info("Cannot delete unknown visitor %s", visitor_id)
                return False

            del self._records[index]
            self._usernames.pop(visitor_id, None)
            logger.debug("Deleted visitor %s", visitor_id)

            self._persist()
            return True

    def find_by_id(self, visitor_id: int | None) -> Visitor | None:
        """Return the live visitor with ``visitor_id``, if any."""
        with self.lock:
            index = self._index_of(visitor_id)
            return None if index is None else self._records[index]

    def find_by_username(self, username: str) -> Visitor | None:
        """Return the live visitor with ``username`` (case-sensitive), if any."""
        with self.lock:
            for visitor in self._records:
                if visitor.username == username:
                    return visitor
            return None

    def borrow(self, isbn: str, copy_id: str, visitor_id: int) -> bool:
        """Append a BORROWED record to the visitor's history."""
        with self.lock:
            visitor = self.find_by_id(visitor_id)
            if visitor is None:
                logger.info("Cannot record borrow of %s: no visitor %s", copy_id, visitor_id)
                return False

            visitor.borrow_records.append(
                BorrowRecord(isbn=isbn, copy_id=copy_id, borrow_time=self._clock())
            )
            logger.debug("Visitor %s borrowed %s", visitor_id, copy_id)

            self._persist()
            return True

    def return_copy(self, isbn: str, copy_id: str, visitor_id: int) -> bool:
        """Close the visitor's first BORROWED record for the copy."""
        with self.lock:
            visitor = self.find_by_id(visitor_id)
            if visitor is None:
                logger.info("Cannot record return of %s: no visitor %s", copy_id, visitor_id)
                return False

            record = visitor.find_active_record(isbn, copy_id)
            if record is None:
                logger.info("Visitor %s has no open borrow of %s", visitor_id, copy_id)
                return False

            record.mark_returned(self._clock())
            logger.debug("Visitor %s returned %s", visitor_id, copy_id)

            self._persist()
            return True

    def _index_of(self, visitor_id: int | None) -> int | None:
        if visitor_id is None:
            return None
        for index, visitor in enumerate(self._records):
            if visitor.visitor_id == visitor_id:
                return index
        return None

    def _username_holder(self, username: str) -> int | None:
        """Id of the visitor whose saved username is ``username``."""
        for visitor_id, name in self._usernames.items():
            if name == username:
                return visitor_id
        return None

    def _after_load(self) -> None:
        # Records without an id cannot be addressed; give them one
        for visitor in self._records:
            if visitor.visitor_id is None:
                visitor.visitor_id = self.next_visitor_id()
                logger.warning(
                    "Visitor %r had no id, assigned %s", visitor.username, visitor.visitor_id
                )

        # Usernames as last accepted by the store; edits are checked against
        # these because callers may rename a live record before calling edit
        self._usernames: dict[int, str] = {
            visitor.visitor_id: visitor.username for visitor in self._records
        }
