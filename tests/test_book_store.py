"""
Tests for the Book Store.

These tests verify:
1. Adding new and existing ISBNs (append-only copy growth)
2. Editing catalog metadata
3. Copy deletion, including removal of emptied titles
4. Borrow/return state checks on single copies
5. Persistence after every mutation
"""

import json
from pathlib import Path

from library_management.database import BookStore
from library_management.models import BookStatus, BookType, Section


class TestBookStoreAdd:
    """Test adding titles and copies."""

    def test_add_new_title(self, book_store: BookStore):
        book = book_store.add("A", "P", "I1", BookType.TECHNOLOGY, Section.S1, 2)

        assert book is not None
        assert book_store.find_by_isbn("I1") is book
        assert [c.copy_id for c in book.copies] == ["I1-1", "I1-2"]
        assert all(c.status == BookStatus.AVAILABLE for c in book.copies)

    def test_duplicate_isbn_appends_and_keeps_metadata(self, book_store: BookStore):
        """Second add of I1 ignores the new title/author/type/section."""
        book_store.add("A", "P", "I1", BookType.TECHNOLOGY, Section.S1, 2)
        book_store.add("B", "Q", "I1", BookType.SCIENCE, Section.S2, 1)

        titles = book_store.list_all()
        assert len(titles) == 1
        book = titles[0]
        assert (book.title, book.author) == ("A", "P")
        assert book.book_type == BookType.TECHNOLOGY
        assert book.section == Section.S1
        assert [c.copy_id for c in book.copies] == ["I1-1", "I1-2", "I1-3"]
        assert all(c.status == BookStatus.AVAILABLE for c in book.copies)

    def test_three_then_two_copies(self, book_store: BookStore):
        book_store.add("T", "A", "X", BookType.ART, Section.S3, 3)
        book_store.add("T", "A", "X", BookType.ART, Section.S3, 2)

        book = book_store.find_by_isbn("X")
        assert [c.copy_id for c in book.copies] == ["X-1", "X-2", "X-3", "X-4", "X-5"]

    def test_numbering_after_deleting_highest_copy(self, book_store: BookStore):
        """Copy numbers freed at the top are reused."""
        book_store.add("T", "A", "X", BookType.ART, Section.S3, 3)
        book_store.delete_copy("X", "X-3")
        book_store.add("T", "A", "X", BookType.ART, Section.S3, 1)

        assert [c.copy_id for c in book_store.find_by_isbn("X").copies] == ["X-1", "X-2", "X-3"]

    def test_non_positive_quantity_refused(self, book_store: BookStore, book_path: Path):
        assert book_store.add("A", "P", "I1", BookType.ART, Section.S1, 0) is None
        assert book_store.find_by_isbn("I1") is None
        assert not book_path.exists()

    def test_add_persists(self, book_store: BookStore, book_path: Path):
        book_store.add("A", "P", "I1", BookType.HISTORY, Section.S2, 1)

        data = json.loads(book_path.read_text())
        assert data[0]["isbn"] == "I1"
        assert data[0]["copies"][0]["copyId"] == "I1-1"


class TestBookStoreEdit:
    """Test editing catalog metadata."""

    def test_edit_updates_four_fields(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.TECHNOLOGY, Section.S1, 2)

        assert book_store.edit("I1", "New", "Someone", BookType.HISTORY, Section.S3) is True

        book = book_store.find_by_isbn("I1")
        assert (book.title, book.author, book.book_type, book.section) == (
            "New",
            "Someone",
            BookType.HISTORY,
            Section.S3,
        )
        assert [c.copy_id for c in book.copies] == ["I1-1", "I1-2"]

    def test_edit_unknown_isbn_fails(self, book_store: BookStore):
        assert book_store.edit("nope", "T", "A", BookType.ART, Section.S1) is False


class TestBookStoreLookups:
    """Test finders and snapshots."""

    def test_find_copy(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 2)

        assert book_store.find_copy("I1", "I1-2").copy_id == "I1-2"
        assert book_store.find_copy("I1", "I1-3") is None
        assert book_store.find_copy("I2", "I1-1") is None

    def test_list_all_is_a_snapshot(self, book_store: BookStore):
        """Changing the returned list or its titles does not touch the store."""
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)

        snapshot = book_store.list_all()
        snapshot[0].title = "Changed"
        snapshot[0].copies.clear()
        snapshot.clear()

        book = book_store.find_by_isbn("I1")
        assert book.title == "A"
        assert len(book.copies) == 1
        assert len(book_store) == 1


class TestBookStoreDelete:
    """Test copy deletion."""

    def test_delete_copy(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 2)

        assert book_store.delete_copy("I1", "I1-1") is True
        assert [c.copy_id for c in book_store.find_by_isbn("I1").copies] == ["I1-2"]

    def test_deleting_last_copy_removes_title(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)

        assert book_store.delete_copy("I1", "I1-1") is True
        assert book_store.find_by_isbn("I1") is None

    def test_delete_unknown_copy_or_title_fails(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)

        assert book_store.delete_copy("I1", "I1-7") is False
        assert book_store.delete_copy("I9", "I1-1") is False
        assert book_store.find_copy("I1", "I1-1") is not None


class TestBookStoreCirculation:
    """Test borrow and return on single copies."""

    def test_borrow_marks_copy(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)

        assert book_store.borrow("I1", "I1-1", 1001) is True

        copy = book_store.find_copy("I1", "I1-1")
        assert copy.status == BookStatus.UNAVAILABLE
        assert copy.borrow_visitor_id == 1001

    def test_borrow_unavailable_or_missing_fails(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)
        book_store.borrow("I1", "I1-1", 1001)

        assert book_store.borrow("I1", "I1-1", 1002) is False
        assert book_store.find_copy("I1", "I1-1").borrow_visitor_id == 1001
        assert book_store.borrow("I1", "I1-2", 1002) is False

    def test_return_keeps_last_borrower(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)
        book_store.borrow("I1", "I1-1", 1001)

        assert book_store.return_copy("I1", "I1-1") is True

        copy = book_store.find_copy("I1", "I1-1")
        assert copy.status == BookStatus.AVAILABLE
        assert copy.borrow_visitor_id == 1001

    def test_return_available_copy_fails(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)

        assert book_store.return_copy("I1", "I1-1") is False
        assert book_store.return_copy("I1", "I1-9") is False


class TestBookStorePersistence:
    """Test reload from disk."""

    def test_reload_restores_state(self, book_store: BookStore, book_path: Path):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 2)
        book_store.borrow("I1", "I1-2", 1001)

        reopened = BookStore(book_path)

        assert reopened.list_all() == book_store.list_all()

    def test_reload_discards_unsaved_changes(self, book_store: BookStore):
        book_store.add("A", "P", "I1", BookType.ART, Section.S1, 1)
        book_store.find_by_isbn("I1").title = "unsaved"

        book_store.reload()

        assert book_store.find_by_isbn("I1").title == "A"

    def test_failed_save_keeps_mutation(self, tmp_path: Path):
        """An I/O failure is logged; the in-memory change stands."""
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")
        store = BookStore(blocker / "BookDatabase.json")

        book = store.add("A", "P", "I1", BookType.ART, Section.S1, 1)

        assert book is not None
        assert store.find_by_isbn("I1") is book
        assert store.save() is False
