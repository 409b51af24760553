"""
Library Management Package.

This package implements the data layer of a small library management
application: a catalog of book titles with physical copies, a roster of
registered visitors with their borrow histories, and the operations that
keep the two consistent.

Key Components:
- models: Pydantic models for titles, copies, visitors and borrow records
- database: JSON file backed stores and the cross-store circulation desk
- auth: Administrator and visitor login
- queries: Catalog search and borrow-history views
- config: Configuration management with Pydantic v2
- tools: MCP tools (operations consumed by a front end)
"""

__version__ = "0.1.0"

# Make database module available at package level
from . import database

__all__ = [
    "__version__",
    "database",
]
