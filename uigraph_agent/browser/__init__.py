from .mcp_tools import load_browser_tools
from .page_source import fetch_page_html
from .runner import BaseCodeRunner, ExecutionResult, PlaywrightCodeRunner

__all__ = ["load_browser_tools", "fetch_page_html", "BaseCodeRunner", "ExecutionResult", "PlaywrightCodeRunner"]
