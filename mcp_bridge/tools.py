"""
Static tool registry

Names, descriptions and input schemas of the browser tools. The bridge does
not interpret them; they are returned verbatim by tools/list and may be
replaced with a JSON file.
"""

import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_TAB_ID = {"type": "number", "description": "Tab ID (optional)"}
_COORDINATE = {"type": "array", "items": {"type": "number"}, "description": "[x, y] coordinates"}

DEFAULT_TOOLS: List[Dict[str, Any]] = [
    {
        "name": "screenshot",
        "description": "Take a screenshot of the current browser tab",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tabId": {"type": "number", "description": "Tab ID (optional, uses active tab)"}
            }
        }
    },
    {
        "name": "navigate",
        "description": "Navigate to a URL or go back/forward in history",
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL to navigate to, or 'back'/'forward'"},
                "tabId": _TAB_ID
            },
            "required": ["url"]
        }
    },
    {
        "name": "read_page",
        "description": "Get the accessibility tree representation of the page",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tabId": _TAB_ID,
                "depth": {"type": "number", "description": "Max depth (default: 15)"},
                "filter": {"type": "string", "enum": ["all", "interactive"], "description": "Filter elements"}
            }
        }
    },
    {
        "name": "click",
        "description": "Click at coordinates or on an element",
        "inputSchema": {
            "type": "object",
            "properties": {
                "coordinate": _COORDINATE,
                "ref": {"type": "string", "description": "Element reference from read_page"},
                "button": {"type": "string", "enum": ["left", "right"], "description": "Mouse button"},
                "tabId": {"type": "number"}
            }
        }
    },
    {
        "name": "type",
        "description": "Type text into the focused element or at coordinates",
        "inputSchema": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Text to type"},
                "coordinate": {"type": "array", "items": {"type": "number"}, "description": "[x, y] to click first"},
                "tabId": {"type": "number"}
            },
            "required": ["text"]
        }
    },
    {
        "name": "scroll",
        "description": "Scroll the page or an element",
        "inputSchema": {
            "type": "object",
            "properties": {
                "direction": {"type": "string", "enum": ["up", "down", "left", "right"]},
                "amount": {"type": "number", "description": "Pixels to scroll (default: 300)"},
                "coordinate": {"type": "array", "items": {"type": "number"}, "description": "Scroll at position"},
                "tabId": {"type": "number"}
            },
            "required": ["direction"]
        }
    },
    {
        "name": "execute_js",
        "description": "Execute JavaScript code in the page context",
        "inputSchema": {
            "type": "object",
            "properties": {
                "code": {"type": "string", "description": "JavaScript code to execute"},
                "tabId": {"type": "number"}
            },
            "required": ["code"]
        }
    },
    {
        "name": "find",
        "description": "Find elements by text content or CSS selector",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text or selector to search for"},
                "tabId": {"type": "number"}
            },
            "required": ["query"]
        }
    },
    {
        "name": "form_input",
        "description": "Set a form field value",
        "inputSchema": {
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS selector for the input"},
                "value": {"description": "Value to set (string, number, or boolean)"},
                "tabId": {"type": "number"}
            },
            "required": ["selector", "value"]
        }
    },
    {
        "name": "tabs_list",
        "description": "List all open tabs in the current window",
        "inputSchema": {"type": "object", "properties": {}}
    },
    {
        "name": "tabs_create",
        "description": "Create a new tab",
        "inputSchema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "URL to open (optional)"}
            }
        }
    },
    {
        "name": "tabs_close",
        "description": "Close a tab",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tabId": {"type": "number", "description": "Tab ID to close (optional, uses active)"}
            }
        }
    },
    {
        "name": "get_page_text",
        "description": "Get the text content of the page",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tabId": {"type": "number"}
            }
        }
    }
]


def load_tools(path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Load the tool registry

    Args:
        path: JSON file holding a list of tools, or an object with a
            "tools" list. None returns the built-in registry.

    Raises:
        ValueError: the file does not hold a list of named tools
    """
    if path is None:
        return DEFAULT_TOOLS

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    tools = data.get("tools") if isinstance(data, dict) else data
    if not isinstance(tools, list) or not all(
        isinstance(tool, dict) and isinstance(tool.get("name"), str) for tool in tools
    ):
        raise ValueError(f"{path} does not contain a list of tools with names")

    logger.info(f"Loaded {len(tools)} tools from {path}")
    return tools
