"""
Book Store: the catalog of titles and their physical copies.

The store is keyed by ISBN. Adding an ISBN that already exists only grows
its copy list; the catalog metadata of the existing title is left alone.
The store does not look at the Visitor Store. Guarding deletes of
borrowed copies is the job of ``CirculationDesk``.
"""

import logging

from ..models.book import BookCopy, BookStatus, BookTitle, BookType, Section
from .base import BaseStore

logger = logging.getLogger(__name__)


class BookStore(BaseStore[BookTitle]):
    """File-backed collection of ``BookTitle`` records."""

    model = BookTitle

    def add(
        self,
        title: str,
        author: str,
        isbn: str,
        book_type: BookType,
        section: Section,
        quantity: int,
    ) -> BookTitle | None:
        """
        Add ``quantity`` copies of ``isbn``, creating the title if it is new.

        For an existing ISBN the ``title``, ``author``, ``book_type`` and
        ``section`` arguments are ignored and new copies continue the
        numbering after the highest existing copy number.

        Returns:
            The title the copies were added to, or None if ``quantity`` < 1
        """
        if quantity < 1:
            logger.warning("Refusing to add %d copies of %s", quantity, isbn)
            return None

        with self.lock:
            book = self.find_by_isbn(isbn)
            if book is None:
                book = BookTitle.with_copies(title, author, isbn, book_type, section, quantity)
                self._records.append(book)
                logger.debug("Created title %s with %d copies", isbn, quantity)
            else:
                added = book.add_copies(quantity)
                logger.debug(
                    "Added copies %s..%s to existing title %s",
                    added[0].copy_id,
                    added[-1].copy_id,
                    isbn,
                )

            self._persist()
            return book

    def edit(
        self,
        isbn: str,
        title: str,
        author: str,
        book_type: BookType,
        section: Section,
    ) -> bool:
        """Update the catalog metadata of a title. Copies are untouched."""
        with self.lock:
            book = self.find_by_isbn(isbn)
            if book is None:
                logger.info("Cannot edit unknown title %s", isbn)
                return False

            book.title = title
            book.author = author
            book.book_type = book_type
            book.section = section
            logger.debug("Edited title %s", isbn)

            self._persist()
            return True

    def find_by_isbn(self, isbn: str) -> BookTitle | None:
        """Return the live title for ``isbn``, if any."""
        with self.lock:
            for book in self._records:
                if book.isbn == isbn:
                    return book
            return None

    def find_copy(self, isbn: str, copy_id: str) -> BookCopy | None:
        """Return the live copy ``copy_id`` of title ``isbn``, if any."""
        with self.lock:
            book = self.find_by_isbn(isbn)
            if book is None:
                return None
            return book.find_copy(copy_id)

    def delete_copy(self, isbn: str, copy_id: str) -> bool:
        """
        Remove one copy. A title left without copies is removed as well.

        The copy's status is not checked here.
        """
        with self.lock:
            book = self.find_by_isbn(isbn)
            if book is None:
                logger.info("Cannot delete copy %s: no title %s", copy_id, isbn)
                return False

            if book.remove_copy(copy_id) is None:
                logger.info("Cannot delete copy %s: not part of %s", copy_id, isbn)
                return False

            if not book.copies:
                self._records.remove(book)
                logger.debug("Removed title %s after deleting its last copy", isbn)
            else:
                logger.debug("Deleted copy %s", copy_id)

            self._persist()
            return True

    def borrow(self, isbn: str, copy_id: str, visitor_id: int) -> bool:
        """Mark an AVAILABLE copy as lent to ``visitor_id``."""
        with self.lock:
            copy = self.find_copy(isbn, copy_id)
            if copy is None:
                logger.info("Cannot borrow %s: no such copy", copy_id)
                return False
            if not copy.is_available:
                logger.info("Cannot borrow %s: already out", copy_id)
                return False

            copy.status = BookStatus.UNAVAILABLE
            copy.borrow_visitor_id = visitor_id
            logger.debug("Copy %s lent to visitor %s", copy_id, visitor_id)

            self._persist()
            return True

    def return_copy(self, isbn: str, copy_id: str) -> bool:
        """
        Put an UNAVAILABLE copy back on the shelf.

        ``borrow_visitor_id`` keeps the last borrower; read it before
        calling if the borrower matters.
        """
        with self.lock:
            copy = self.find_copy(isbn, copy_id)
            if copy is None:
                logger.info("Cannot return %s: no such copy", copy_id)
                return False
            if copy.is_available:
                logger.info("Cannot return %s: not borrowed", copy_id)
                return False

            copy.status = BookStatus.AVAILABLE
            logger.debug("Copy %s returned", copy_id)

            self._persist()
            return True
