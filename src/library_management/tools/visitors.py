"""
Visitor account tools for the Library Management MCP server.

1. register_visitor: self-registration with a unique username
2. edit_visitor: update profile fields (and optionally the password)
3. delete_visitor: remove an account that holds no borrowed copies
4. login: check administrator or visitor credentials
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..auth import AuthKind, authenticate
from ..database.registry import get_circulation_desk, get_visitor_store
from ..models.visitor import Gender, Visitor
from .responses import error_response, invalid_input_response, outcome_response, success_response

logger = logging.getLogger(__name__)


def _visitor_summary(visitor: Visitor) -> dict[str, Any]:
    """Public view of a visitor; the password is never echoed back."""
    return {
        "visitor_id": visitor.visitor_id,
        "username": visitor.username,
        "full_name": visitor.full_name,
        "gender": visitor.gender.value,
        "age": visitor.age,
        "phone": visitor.phone,
        "address": visitor.address,
        "active_borrows": visitor.active_borrow_count,
    }


class _ProfileInput(BaseModel):
    """Profile fields shared by registration and editing."""

    full_name: str = Field(..., description="Full name", min_length=1, max_length=200)
    gender: Gender = Field(..., description="MALE or FEMALE")
    age: int = Field(..., description="Age in years", ge=0, le=150)
    phone: str = Field(..., description="Contact phone number", min_length=1, max_length=50)
    address: str = Field(..., description="Postal address", min_length=1, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


# =============================================================================
# REGISTER TOOL
# =============================================================================

class RegisterVisitorInput(_ProfileInput):
    """Input schema for the register_visitor tool. Every field is required."""

    username: str = Field(
        ...,
        description="Login name, unique among visitors (case-sensitive)",
        min_length=1,
        max_length=100,
        examples=["alice"],
    )
    password: str = Field(..., description="Login password", min_length=1, max_length=100)


async def register_visitor_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the register_visitor tool. Returns the allocated visitor id."""
    try:
        try:
            params = RegisterVisitorInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid registration parameters: %s", e)
            return invalid_input_response("registration", e)

        store = get_visitor_store()
        with store.lock:
            if store.find_by_username(params.username) is not None:
                return error_response(f"Username '{params.username}' already exists")

            visitor = Visitor(
                username=params.username,
                password=params.password,
                full_name=params.full_name,
                gender=params.gender,
                age=params.age,
                phone=params.phone,
                address=params.address,
            )
            if not store.add(visitor):
                return error_response(f"Username '{params.username}' already exists")

            summary = _visitor_summary(visitor)

        return success_response(
            f"Registered '{visitor.username}' with visitor id {visitor.visitor_id}.",
            {"visitor": summary},
        )

    except Exception as e:
        logger.exception("Unexpected error in register_visitor tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# EDIT TOOL
# =============================================================================

class EditVisitorInput(_ProfileInput):
    """
    Input schema for the edit_visitor tool.

    The visitor id, username and borrow records cannot be changed here.
    """

    visitor_id: int = Field(..., description="Id of the visitor to edit", ge=1)
    password: str | None = Field(
        default=None,
        description="New password; omit to keep the current one",
        min_length=1,
        max_length=100,
    )


async def edit_visitor_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the edit_visitor tool."""
    try:
        try:
            params = EditVisitorInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid edit_visitor parameters: %s", e)
            return invalid_input_response("edit_visitor", e)

        store = get_visitor_store()
        with store.lock:
            current = store.find_by_id(params.visitor_id)
            if current is None:
                return error_response(f"Visitor {params.visitor_id} not found")

            updated = current.model_copy(deep=True)
            updated.full_name = params.full_name
            updated.gender = params.gender
            updated.age = params.age
            updated.phone = params.phone
            updated.address = params.address
            if params.password is not None:
                updated.password = params.password

            if not store.edit(updated):
                return error_response(f"Visitor {params.visitor_id} could not be updated")

            summary = _visitor_summary(updated)

        return success_response(f"Updated visitor {params.visitor_id}.", {"visitor": summary})

    except Exception as e:
        logger.exception("Unexpected error in edit_visitor tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# DELETE TOOL
# =============================================================================

class DeleteVisitorInput(BaseModel):
    """Input schema for the delete_visitor tool."""

    visitor_id: int = Field(..., description="Id of the visitor to delete", ge=1)


async def delete_visitor_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Handler for the delete_visitor tool. Refused while copies are still borrowed."""
    try:
        try:
            params = DeleteVisitorInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid delete_visitor parameters: %s", e)
            return invalid_input_response("delete_visitor", e)

        outcome = get_circulation_desk().delete_visitor(params.visitor_id)
        return outcome_response(outcome, {"visitor_id": params.visitor_id})

    except Exception as e:
        logger.exception("Unexpected error in delete_visitor tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# LOGIN TOOL
# =============================================================================

class LoginInput(BaseModel):
    """Input schema for the login tool."""

    username: str = Field(default="", description="Login name")
    password: str = Field(default="", description="Login password")

    model_config = ConfigDict(str_strip_whitespace=True)


async def login_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """
    Handler for the login tool.

    Reports the role (ADMIN or VISITOR) and, for visitors, the visitor id.
    """
    try:
        try:
            params = LoginInput.model_validate(arguments)
        except ValidationError as e:
            logger.warning("Invalid login parameters: %s", e)
            return invalid_input_response("login", e)

        if not params.username or not params.password:
            return error_response("Username and password are required")

        result = authenticate(params.username, params.password, get_visitor_store())
        if not result:
            return error_response("Invalid username or password")

        if result.kind == AuthKind.ADMIN:
            text = "Logged in as administrator."
        else:
            text = f"Logged in as visitor {result.visitor_id}."

        return success_response(
            text,
            {"role": result.kind.value, "visitor_id": result.visitor_id},
        )

    except Exception as e:
        logger.exception("Unexpected error in login tool")
        return error_response(f"An unexpected error occurred: {e!s}")


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

register_visitor = {
    "name": "register_visitor",
    "description": (
        "Register a new visitor. All profile fields are required and the username must "
        "not be taken. Returns the allocated visitor id."
    ),
    "inputSchema": RegisterVisitorInput.model_json_schema(),
    "inputModel": RegisterVisitorInput,
    "handler": register_visitor_handler,
}

edit_visitor = {
    "name": "edit_visitor",
    "description": (
        "Update a visitor's full name, gender, age, phone and address, and optionally "
        "the password."
    ),
    "inputSchema": EditVisitorInput.model_json_schema(),
    "inputModel": EditVisitorInput,
    "handler": edit_visitor_handler,
}

delete_visitor = {
    "name": "delete_visitor",
    "description": "Delete a visitor account. Refused while the visitor still has books borrowed.",
    "inputSchema": DeleteVisitorInput.model_json_schema(),
    "inputModel": DeleteVisitorInput,
    "handler": delete_visitor_handler,
}

login = {
    "name": "login",
    "description": (
        "Check a username and password. Returns ADMIN for the administrator account or "
        "VISITOR with the visitor id."
    ),
    "inputSchema": LoginInput.model_json_schema(),
    "inputModel": LoginInput,
    "handler": login_handler,
}
