import logging
from typing import Any, Dict, List, Optional

from langchain_core.tools import BaseTool
from langchain_mcp_adapters.client import MultiServerMCPClient

from uigraph_agent.graph.errors import ExternalCallError


async def load_browser_tools(mcp_config: Optional[Dict[str, Any]]) -> List[BaseTool]:
    """Discover the browser-automation tools exposed by the configured MCP servers.

    ``mcp_config`` is the connection map handed to MultiServerMCPClient, e.g.
    ``{"playwright": {"transport": "streamable_http", "url": "http://localhost:8931/mcp"}}``.
    The tools are opaque to the agents and are merged into their tool list
    as they are.
    """
    if not mcp_config:
        logging.warning("No browser MCP server configured, agents will run without browser tools")
        return []

    client = MultiServerMCPClient(mcp_config)
    try:
        tools = await client.get_tools()
    except Exception as e:
        raise ExternalCallError(f"Could not load browser tools from {', '.join(mcp_config)}: {e}") from e
    logging.info(f"Loaded {len(tools)} browser tools: {[tool.name for tool in tools]}")
    return tools
