from .graph_tools import (
    MUTATION_TOOL_NAMES,
    REFERENCE_TOOL_NAMES,
    GraphTool,
    GraphToolName,
    build_tool,
    create_all_tools,
    create_reference_tools,
)

__all__ = [
    "GraphTool",
    "GraphToolName",
    "REFERENCE_TOOL_NAMES",
    "MUTATION_TOOL_NAMES",
    "build_tool",
    "create_all_tools",
    "create_reference_tools",
]
