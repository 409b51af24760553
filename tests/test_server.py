"""Tests for MCP server construction."""

import inspect
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastmcp import Client, FastMCP

from library_management.config import LibraryConfig
from library_management.database import get_book_store
from library_management.server import create_server, tool_function
from library_management.tools import all_tools, borrow_history


class TestCreateServer:
    """Test tool registration on the FastMCP server."""

    def test_server_metadata(self, tmp_path: Path):
        mcp = create_server(LibraryConfig(data_dir=tmp_path, server_name="test-library"))

        assert isinstance(mcp, FastMCP)
        assert mcp.name == "test-library"

    def test_every_tool_registered(self, tmp_path: Path):
        with patch.object(FastMCP, "tool", autospec=True) as mock_tool:
            create_server(LibraryConfig(data_dir=tmp_path))

        registered = [call.kwargs["name"] for call in mock_tool.call_args_list]
        assert registered == [tool["name"] for tool in all_tools]


class TestToolFunction:
    """Test the keyword-argument adapter around tool handlers."""

    def test_signature_mirrors_input_model(self):
        params = inspect.signature(tool_function(borrow_history)).parameters

        assert list(params) == ["visitor_id", "active_only"]
        assert params["visitor_id"].default is inspect.Parameter.empty
        assert params["active_only"].default is None
        assert all(p.kind is inspect.Parameter.KEYWORD_ONLY for p in params.values())

    @pytest.mark.asyncio
    async def test_omitted_arguments_are_not_forwarded(self):
        handler = AsyncMock(return_value={"content": []})
        call = tool_function({**borrow_history, "handler": handler})

        await call(visitor_id=1001, active_only=None)

        handler.assert_awaited_once_with({"visitor_id": 1001})


@pytest.mark.asyncio
class TestServedTools:
    """Test the tools as an MCP client sees them."""

    async def test_clients_see_input_model_schema(self, tmp_path: Path):
        mcp = create_server(LibraryConfig(data_dir=tmp_path))

        async with Client(mcp) as client:
            tools = {tool.name: tool for tool in await client.list_tools()}

        assert set(tools) == {tool["name"] for tool in all_tools}
        schema = tools["borrow_copy"].inputSchema
        assert set(schema["properties"]) == {"isbn", "copy_id", "visitor_id"}
        assert set(schema["required"]) == {"isbn", "copy_id", "visitor_id"}
        assert schema["properties"]["visitor_id"]["type"] == "integer"

    async def test_call_is_validated_by_the_handler(self, tmp_path: Path):
        mcp = create_server(LibraryConfig(data_dir=tmp_path))

        async with Client(mcp) as client:
            await client.call_tool(
                "add_books",
                {
                    "title": "Dune",
                    "author": "Herbert",
                    "isbn": "I9",
                    "book_type": "fiction",
                    "section": "s2",
                    "quantity": 2,
                },
            )

        book = get_book_store().find_by_isbn("I9")
        assert book is not None
        assert book.total_copies == 2
