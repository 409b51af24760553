"""
Login for the two operator roles.

There is a single administrator account with a fixed credential; it is not
stored anywhere. Visitors log in with the username and password stored in
the Visitor Store, compared as plain text.
"""

import logging
from enum import Enum

from pydantic import BaseModel, Field

from .database.visitor_store import VisitorStore

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "123456"


class AuthKind(str, Enum):
    ADMIN = "ADMIN"
    VISITOR = "VISITOR"
    FAILURE = "FAILURE"


class AuthResult(BaseModel):
    """Who logged in; ``visitor_id`` is set only for visitors."""

    kind: AuthKind = Field(..., description="Administrator, visitor or failed login")
    visitor_id: int | None = Field(default=None, description="Id of the authenticated visitor")

    @property
    def ok(self) -> bool:
        return self.kind != AuthKind.FAILURE

    def __bool__(self) -> bool:
        return self.ok


def authenticate(username: str, password: str, visitor_store: VisitorStore) -> AuthResult:
    """
    Check a credential pair.

    Empty usernames or passwords never authenticate. The administrator
    credential is checked before the Visitor Store.
    """
    if not username or not password:
        return AuthResult(kind=AuthKind.FAILURE)

    if username == ADMIN_USERNAME and password == ADMIN_PASSWORD:
        logger.info("Administrator logged in")
        return AuthResult(kind=AuthKind.ADMIN)

    visitor = visitor_store.find_by_username(username)
    if visitor is None or visitor.password != password:
        logger.info("Failed login for %r", username)
        return AuthResult(kind=AuthKind.FAILURE)

    logger.info("Visitor %s logged in", visitor.visitor_id)
    return AuthResult(kind=AuthKind.VISITOR, visitor_id=visitor.visitor_id)
