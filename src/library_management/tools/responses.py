"""
MCP tool response helpers.

Every tool answers with a ``content`` list of text items. Failed calls set
``isError`` so the client can tell a refused operation from a result;
successful calls may add structured ``data`` for follow-up calls.
"""

from typing import Any

from pydantic import ValidationError

from ..models.outcome import Outcome


def error_response(text: str) -> dict[str, Any]:
    return {
        "isError": True,
        "content": [{
            "type": "text",
            "text": text
        }]
    }


def success_response(text: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {
        "content": [{
            "type": "text",
            "text": text
        }]
    }
    if data is not None:
        response["data"] = data
    return response


def invalid_input_response(action: str, error: ValidationError) -> dict[str, Any]:
    """Readable summary of the fields that failed validation."""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'input'}: {err['msg']}"
        for err in error.errors()
    )
    return error_response(f"Invalid {action} parameters: {problems}")


def outcome_response(outcome: Outcome, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Map a store/desk ``Outcome`` onto a tool response."""
    if not outcome:
        return error_response(outcome.message)
    result = {"outcome": outcome.model_dump(mode="json")}
    if data:
        result.update(data)
    return success_response(outcome.message, result)
