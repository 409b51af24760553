"""
Catalog tools for the Library Management MCP server.

This module exposes the administrator's catalog operations:
1. search_catalog: list copies of titles matching a text query
2. add_books: add copies of a new or existing title
3. edit_book: change title, author, type or section of a title
4. delete_copy: remove a copy that is on the shelf

Inputs are validated by the pydantic schemas below before any store is
touched. Strings are stripped, blank required fields are rejected and
book types are accepted by symbolic name or display label in any case.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..database.registry import get_book_store, get_circulation_desk
from ..models.book import BookTitle, BookType, Section
from ..queries import search_catalog as search_catalog_rows
from .responses import error_response, invalid_input_response, outcome_response, success_response

logger = logging.getLogger(__name__)


def _normalize_choice(v: Any) -> Any:
    """Accept ``technology``, ``Technology`` or ``TECHNOLOGY``."""
    if isinstance(v, str):
        return v.strip().upper()
    return v


def _book_summary(book: BookTitle) -> dict[str, Any]:
    return {
        "title": book.title,
        "author": book.author,
        "isbn": book.isbn,
        "type": book.book_type.value,
        "section": book.section.value,
        "total_copies": book.total_copies,
        "available_copies": book.available_count,
        "copies": [copy.model_dump(mode="json", by_alias=True) for copy in book.copies],
    }


# =============================================================================
# SEARCH TOOL
# =============================================================================

class SearchCatalogInput(BaseModel):
    """Input schema for the search_catalog tool."""

    query: str = Field(
        default="",
        description="Text matched case-insensitively against title, author and ISBN; "
        "empty lists every copy",
        max_length=200,
        examples=["gatsby", "Fitzgerald", "9780134685479"],
    )

    model_config = ConfigDict(str_strip_whitespace=True)


async def search_catalog_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the search_catalog tool.

    Returns one row per copy so the client can pick a copy id for
    borrow_copy, return_copy or delete_copy.
    """
    try:
        try:
            params = SearchCatalogInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid search parameters: %s", e)
            return invalid_input_response("search", e)

        rows = search_catalog_rows(get_book_store().list_all(), params.query)

        if not rows:
            text = (
                f"No copies match '{params.query}'." if params.query else "The catalog is empty."
            )
        else:
            lines = [f"Found {len(rows)} copies:"]
            lines.extend(
                f"- {row.copy_id}: '{row.title}' by {row.author} "
                f"[{row.book_type.label}, {row.section.value}] {row.status.value}"
                for row in rows
            )
            text = "\n".join(lines)

        return success_response(
            text,
            {
                "query": params.query,
                "total": len(rows),
                "rows": [row.model_dump(mode="json") for row in rows],
            },
        )

    except Exception as e:
        logger.exception("Unexpected error in search_catalog tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# ADD BOOKS TOOL
# =============================================================================

class AddBooksInput(BaseModel):
    """
    Input schema for the add_books tool.

    When the ISBN is already in the catalog only ``quantity`` matters: the
    existing title keeps its title, author, type and section.
    """

    title: str = Field(..., description="Title of the book", min_length=1, max_length=500)
    author: str = Field(..., description="Author of the book", min_length=1, max_length=200)
    isbn: str = Field(
        ...,
        description="ISBN of the title",
        min_length=1,
        max_length=50,
        examples=["9780134685479", "I1"],
    )
    book_type: BookType = Field(..., description="Catalog category")
    section: Section = Field(..., description="Shelf section")
    quantity: int = Field(
        default=1,
        description="Number of copies to add",
        ge=1,
        le=1000,
    )

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("book_type", "section", mode="before")
    @classmethod
    def normalize_choice(cls, v: Any) -> Any:
        return _normalize_choice(v)


async def add_books_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the add_books tool."""
    try:
        try:
            params = AddBooksInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid add_books parameters: %s", e)
            return invalid_input_response("add_books", e)

        store = get_book_store()
        with store.lock:
            existing = store.find_by_isbn(params.isbn)
            known_ids = {copy.copy_id for copy in existing.copies} if existing else set()

            book = store.add(
                title=params.title,
                author=params.author,
                isbn=params.isbn,
                book_type=params.book_type,
                section=params.section,
                quantity=params.quantity,
            )
            if book is None:
                return error_response(f"Could not add {params.quantity} copies")

            added = [copy.copy_id for copy in book.copies if copy.copy_id not in known_ids]
            summary = _book_summary(book)

        if existing is None:
            message = f"Added '{book.title}' ({book.isbn}) with {len(added)} copies."
        else:
            message = f"Added {len(added)} copies to existing title '{book.title}' ({book.isbn})."

        return success_response(
            message,
            {
                "created": existing is None,
                "added_copy_ids": added,
                "book": summary,
            },
        )

    except Exception as e:
        logger.exception("Unexpected error in add_books tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# EDIT BOOK TOOL
# =============================================================================

class EditBookInput(BaseModel):
    """Input schema for the edit_book tool. The ISBN itself cannot change."""

    isbn: str = Field(..., description="ISBN of the title to edit", min_length=1)
    title: str = Field(..., description="New title", min_length=1, max_length=500)
    author: str = Field(..., description="New author", min_length=1, max_length=200)
    book_type: BookType = Field(..., description="New catalog category")
    section: Section = Field(..., description="New shelf section")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("book_type", "section", mode="before")
    @classmethod
    def normalize_choice(cls, v: Any) -> Any:
        return _normalize_choice(v)


async def edit_book_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the edit_book tool."""
    try:
        try:
            params = EditBookInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid edit_book parameters: %s", e)
            return invalid_input_response("edit_book", e)

        store = get_book_store()
        with store.lock:
            if not store.edit(
                isbn=params.isbn,
                title=params.title,
                author=params.author,
                book_type=params.book_type,
                section=params.section,
            ):
                return error_response(f"Book with ISBN {params.isbn} not found")

            summary = _book_summary(store.find_by_isbn(params.isbn))

        return success_response(f"Updated '{params.title}' ({params.isbn}).", {"book": summary})

    except Exception as e:
        logger.exception("Unexpected error in edit_book tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# DELETE COPY TOOL
# =============================================================================

class DeleteCopyInput(BaseModel):
    """Input schema for the delete_copy tool."""

    isbn: str = Field(..., description="ISBN of the title", min_length=1)
    copy_id: str = Field(
        ...,
        description="Id of the copy to delete",
        min_length=1,
        examples=["I1-3"],
    )

    model_config = ConfigDict(str_strip_whitespace=True)


async def delete_copy_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the delete_copy tool.

    Borrowed copies are refused; deleting the last copy of a title removes
    the title from the catalog.
    """
    try:
        try:
            params = DeleteCopyInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid delete_copy parameters: %s", e)
            return invalid_input_response("delete_copy", e)

        outcome = get_circulation_desk().delete_copy(params.isbn, params.copy_id)
        title_removed = outcome.ok and get_book_store().find_by_isbn(params.isbn) is None
        return outcome_response(
            outcome,
            {"isbn": params.isbn, "copy_id": params.copy_id, "title_removed": title_removed},
        )

    except Exception as e:
        logger.exception("Unexpected error in delete_copy tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

search_catalog = {
    "name": "search_catalog",
    "description": (
        "Search the catalog by title, author or ISBN (case-insensitive substring match). "
        "Returns one row per physical copy with its status. An empty query lists every copy."
    ),
    "inputSchema": SearchCatalogInput.model_json_schema(),
    "inputModel": SearchCatalogInput,
    "handler": search_catalog_handler,
}

add_books = {
    "name": "add_books",
    "description": (
        "Add copies of a book. A new ISBN creates the title; an existing ISBN only gets "
        "more copies, numbered after its highest existing copy."
    ),
    "inputSchema": AddBooksInput.model_json_schema(),
    "inputModel": AddBooksInput,
    "handler": add_books_handler,
}

edit_book = {
    "name": "edit_book",
    "description": "Change the title, author, type and section of a title identified by ISBN.",
    "inputSchema": EditBookInput.model_json_schema(),
    "inputModel": EditBookInput,
    "handler": edit_book_handler,
}

delete_copy = {
    "name": "delete_copy",
    "description": (
        "Delete one copy that is currently on the shelf. Deleting the last copy removes "
        "the title."
    ),
    "inputSchema": DeleteCopyInput.model_json_schema(),
    "inputModel": DeleteCopyInput,
    "handler": delete_copy_handler,
}
