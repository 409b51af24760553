"""
MCP Tools for the Library Management server.

Each tool is a dictionary with a name, a description, its pydantic input
model and that model's JSON Schema, and an async handler. Handlers validate
their arguments, call the stores or the circulation desk, and answer with text
content plus structured ``data``; failures come back with ``isError`` set
instead of raising.
"""

from .catalog import add_books, delete_copy, edit_book, search_catalog
from .circulation import borrow_copy, borrow_history, return_copy
from .visitors import delete_visitor, edit_visitor, login, register_visitor

# Export all tools for server registration
all_tools = [
    search_catalog,
    add_books,
    edit_book,
    delete_copy,
    borrow_copy,
    return_copy,
    borrow_history,
    register_visitor,
    edit_visitor,
    delete_visitor,
    login,
]

__all__ = [
    "add_books",
    "all_tools",
    "borrow_copy",
    "borrow_history",
    "delete_copy",
    "delete_visitor",
    "edit_book",
    "edit_visitor",
    "login",
    "register_visitor",
    "return_copy",
    "search_catalog",
]
