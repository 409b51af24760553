"""Library Management MCP Server

Exposes the library data layer as MCP tools over the stdio transport. A
front end (or an LLM client) searches the catalog, manages titles and
copies, registers visitors and records borrows and returns through the
tools in ``library_management.tools``.

Logging goes to stderr; stdout carries the MCP protocol.
"""

import inspect
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from fastmcp import FastMCP
from pydantic import BaseModel

from .config import LibraryConfig, get_config
from .database.registry import get_circulation_desk
from .observability import initialize_observability
from .tools import all_tools

# Initialize logging - stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Library Management MCP Server - manages a catalog of book titles with physical "
    "copies and a roster of registered visitors. Use search_catalog to find copy ids, "
    "borrow_copy / return_copy for circulation (at most 10 open borrows per visitor), "
    "add_books / edit_book / delete_copy for the catalog, and register_visitor / "
    "edit_visitor / delete_visitor / login for accounts."
)


def tool_function(tool: dict[str, Any]) -> Callable[..., Awaitable[dict[str, Any]]]:
    """
    Adapt a tool handler to FastMCP's calling convention.

    Handlers take one ``arguments`` dict, but FastMCP builds a tool's
    parameters from the function signature. The returned coroutine function
    takes one keyword argument per field of the tool's input model and
    passes them on as a dict. The parameters are typed ``Any`` so the
    handler's own input model does all the validation; arguments the client
    left out are not passed, and the model's defaults apply.
    """
    handler = tool["handler"]
    model: type[BaseModel] = tool["inputModel"]

    async def call(**arguments: Any) -> dict[str, Any]:
        return await handler({k: v for k, v in arguments.items() if v is not None})

    call.__name__ = tool["name"]
    call.__doc__ = tool["description"]
    call.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        [
            inspect.Parameter(
                name,
                inspect.Parameter.KEYWORD_ONLY,
                default=inspect.Parameter.empty if field.is_required() else None,
                annotation=Any,
            )
            for name, field in model.model_fields.items()
        ],
        return_annotation=dict[str, Any],
    )
    call.__annotations__ = {name: Any for name in model.model_fields} | {
        "return": dict[str, Any]
    }
    return call


def create_server(config: LibraryConfig) -> FastMCP:
    """Build the FastMCP server and register every tool."""
    mcp = FastMCP(
        name=config.server_name,
        version=config.server_version,
        instructions=INSTRUCTIONS,
    )

    for tool in all_tools:
        logger.debug("Registering tool: %s", tool["name"])
        try:
            registered = mcp.tool(
                name=tool["name"],
                description=tool["description"],
            )(tool_function(tool))
            # Advertise the input model's schema (types, enums, limits)
            registered.parameters = tool["inputSchema"]
        except Exception:
            logger.exception("Failed to register tool %s", tool["name"])
            raise

    logger.info("Registered %d tools", len(all_tools))
    return mcp


def run_stdio_server(config: LibraryConfig) -> None:
    """Open the stores and serve MCP requests on stdin/stdout."""
    logger.info("Starting %s v%s on stdio transport", config.server_name, config.server_version)

    if config.is_development:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose logging active")
    else:
        logging.getLogger().setLevel(config.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)

    initialize_observability(config)

    # Open the stores up front so reconciliation runs before the first call
    desk = get_circulation_desk()
    logger.info(
        "Catalog: %d titles in %s; visitors: %d in %s",
        len(desk.books),
        desk.books.path,
        len(desk.visitors),
        desk.visitors.path,
    )

    mcp = create_server(config)

    # Set up signal handlers for graceful shutdown
    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("MCP Server ready and waiting for connections...")
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)


def main() -> None:
    """Main entry point for the MCP server.

    Starts the server via ``python -m library_management.server`` or the
    ``library-management-mcp`` script.
    """
    try:
        config = get_config()

        logger.info("=" * 60)
        logger.info("Library Management MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Data directory: %s", config.data_dir)
        logger.info("Debug Mode: %s", config.debug)
        logger.info("=" * 60)

        run_stdio_server(config)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
