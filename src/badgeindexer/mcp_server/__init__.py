"""MCP server for badgeindexer: exposes badge extraction via Model Context Protocol."""

from fastmcp import FastMCP


def create_server() -> FastMCP:
    """Create and configure the FastMCP server instance."""
    mcp = FastMCP(
        name="badgeindexer",
        instructions=(
            "MCP server for badgeindexer, which finds README badges, reduces their image URLs "
            "to organization-agnostic patterns and classifies them with ordered rules. Use tools "
            "to extract badges from Markdown, canonicalize and classify badge URLs, and "
            "summarize crawled data."
        ),
    )

    from badgeindexer.mcp_server.resources import register_resources
    from badgeindexer.mcp_server.tools import register_tools

    register_tools(mcp)
    register_resources(mcp)

    return mcp


def main() -> None:
    """Entry point for the badgeindexer-mcp CLI command."""
    server = create_server()
    server.run()
