"""
Circulation tools for the Library Management MCP server.

1. borrow_copy: lend a copy to a visitor (at most ten open borrows each)
2. return_copy: take a copy back and close the borrower's record
3. borrow_history: a visitor's borrow records with the titles' catalog data

Borrow and return change both stores; the CirculationDesk checks every
precondition first, so a refused call leaves both untouched.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..database.registry import get_book_store, get_circulation_desk, get_visitor_store
from ..queries import borrow_history as borrow_history_rows
from .responses import error_response, invalid_input_response, outcome_response, success_response

logger = logging.getLogger(__name__)


# =============================================================================
# BORROW TOOL
# =============================================================================

class BorrowCopyInput(BaseModel):
    """Input schema for the borrow_copy tool."""

    isbn: str = Field(..., description="ISBN of the title", min_length=1)
    copy_id: str = Field(
        ...,
        description="Id of the copy to lend",
        min_length=1,
        examples=["I1-2"],
    )
    visitor_id: int = Field(
        ...,
        description="Id of the borrowing visitor",
        ge=1,
        examples=[1001],
    )

    model_config = ConfigDict(str_strip_whitespace=True)


async def borrow_copy_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the borrow_copy tool.

    Refused when the visitor or copy does not exist, the copy is already
    out, or the visitor already holds ten copies.
    """
    try:
        try:
            params = BorrowCopyInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid borrow parameters: %s", e)
            return invalid_input_response("borrow", e)

        outcome = get_circulation_desk().borrow(params.isbn, params.copy_id, params.visitor_id)

        data = None
        if outcome:
            visitor = get_visitor_store().find_by_id(params.visitor_id)
            data = {
                "isbn": params.isbn,
                "copy_id": params.copy_id,
                "visitor_id": params.visitor_id,
                "active_borrows": visitor.active_borrow_count if visitor else None,
            }
        return outcome_response(outcome, data)

    except Exception as e:
        logger.exception("Unexpected error in borrow_copy tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# RETURN TOOL
# =============================================================================

class ReturnCopyInput(BaseModel):
    """
    Input schema for the return_copy tool.

    The borrower is looked up from the copy, so only the copy is needed.
    """

    isbn: str = Field(..., description="ISBN of the title", min_length=1)
    copy_id: str = Field(..., description="Id of the copy being returned", min_length=1)

    model_config = ConfigDict(str_strip_whitespace=True)


async def return_copy_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the return_copy tool."""
    try:
        try:
            params = ReturnCopyInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid return parameters: %s", e)
            return invalid_input_response("return", e)

        outcome = get_circulation_desk().return_copy(params.isbn, params.copy_id)

        data = None
        if outcome:
            copy = get_book_store().find_copy(params.isbn, params.copy_id)
            data = {
                "isbn": params.isbn,
                "copy_id": params.copy_id,
                "visitor_id": copy.borrow_visitor_id if copy else None,
            }
        return outcome_response(outcome, data)

    except Exception as e:
        logger.exception("Unexpected error in return_copy tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# BORROW HISTORY TOOL
# =============================================================================

class BorrowHistoryInput(BaseModel):
    """Input schema for the borrow_history tool."""

    visitor_id: int = Field(..., description="Id of the visitor", ge=1, examples=[1001])
    active_only: bool = Field(
        default=False,
        description="Only list copies the visitor still holds",
    )


async def borrow_history_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the borrow_history tool.

    Records whose title has left the catalog are not listed.
    """
    try:
        try:
            params = BorrowHistoryInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid borrow_history parameters: %s", e)
            return invalid_input_response("borrow_history", e)

        books = get_book_store()
        visitors = get_visitor_store()
        # Same lock order as the CirculationDesk: books, then visitors
        with books.lock, visitors.lock:
            visitor = visitors.find_by_id(params.visitor_id)
            if visitor is None:
                return error_response(f"Visitor {params.visitor_id} not found")
            rows = borrow_history_rows(visitor, books)

        if params.active_only:
            rows = [row for row in rows if row.return_time is None]

        if not rows:
            text = f"Visitor {params.visitor_id} has no borrow records."
        else:
            lines = [f"Visitor {params.visitor_id} borrow history ({len(rows)} records):"]
            lines.extend(
                f"- {row.copy_id}: '{row.title}' by {row.author}, borrowed "
                f"{row.borrow_time.isoformat(sep=' ', timespec='seconds')}, "
                f"returned: {row.return_label}"
                for row in rows
            )
            text = "\n".join(lines)

        return success_response(
            text,
            {
                "visitor_id": params.visitor_id,
                "total": len(rows),
                "records": [
                    {**row.model_dump(mode="json"), "return_label": row.return_label}
                    for row in rows
                ],
            },
        )

    except Exception as e:
        logger.exception("Unexpected error in borrow_history tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

borrow_copy = {
    "name": "borrow_copy",
    "description": (
        "Lend an available copy to a visitor. Fails if the copy is already out, the copy "
        "or visitor does not exist, or the visitor already has 10 books borrowed."
    ),
    "inputSchema": BorrowCopyInput.model_json_schema(),
    "inputModel": BorrowCopyInput,
    "handler": borrow_copy_handler,
}

return_copy = {
    "name": "return_copy",
    "description": (
        "Return a borrowed copy. The copy goes back on the shelf and the borrower's open "
        "record is closed with the return time."
    ),
    "inputSchema": ReturnCopyInput.model_json_schema(),
    "inputModel": ReturnCopyInput,
    "handler": return_copy_handler,
}

borrow_history = {
    "name": "borrow_history",
    "description": (
        "List a visitor's borrow records with title, author, type, section, copy id, "
        "borrow time and return time."
    ),
    "inputSchema": BorrowHistoryInput.model_json_schema(),
    "inputModel": BorrowHistoryInput,
    "handler": borrow_history_handler,
}
