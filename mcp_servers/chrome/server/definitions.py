"""Tool schema definitions for the Chrome toolset."""

from __future__ import annotations

from typing import Any

NAVIGATE_TOOL: dict[str, Any] = {
    "name": "chrome_navigate",
    "description": "Navigate the browser to the given URL",
    "inputSchema": {
        "type": "object",
        "properties": {
            "url": {"type": "string", "description": "URL to navigate to"},
            "waitUntil": {
                "type": "string",
                "description": "Wait condition (load, domcontentloaded, networkidle0, networkidle2)",
                "default": "networkidle2",
            },
        },
        "required": ["url"],
    },
}

SEARCH_TOOL: dict[str, Any] = {
    "name": "chrome_search",
    "description": "Search for the given content with the Bing search engine",
    "inputSchema": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Keywords or content to search for"},
        },
        "required": ["query"],
    },
}

SCREENSHOT_TOOL: dict[str, Any] = {
    "name": "chrome_screenshot",
    "description": "Take a screenshot of the current page",
    "inputSchema": {
        "type": "object",
        "properties": {
            "fullPage": {"type": "boolean", "description": "Capture the whole page", "default": True},
            "quality": {"type": "number", "description": "Screenshot quality (1-100)", "default": 90},
        },
    },
}

GET_CONTENT_TOOL: dict[str, Any] = {
    "name": "chrome_get_content",
    "description": "Get the content of the page or of a specific element",
    "inputSchema": {
        "type": "object",
        "properties": {
            "selector": {
                "type": "string",
                "description": "CSS selector; the whole page content is returned when omitted",
            },
        },
    },
}

CLICK_TOOL: dict[str, Any] = {
    "name": "chrome_click",
    "description": "Click an element on the page",
    "inputSchema": {
        "type": "object",
        "properties": {
            "selector": {"type": "string", "description": "CSS selector of the element to click"},
        },
        "required": ["selector"],
    },
}

TYPE_TOOL: dict[str, Any] = {
    "name": "chrome_type",
    "description": "Type text into the given input field",
    "inputSchema": {
        "type": "object",
        "properties": {
            "selector": {"type": "string", "description": "CSS selector of the input field"},
            "text": {"type": "string", "description": "Text to type"},
            "clear": {"type": "boolean", "description": "Clear the field first", "default": False},
        },
        "required": ["selector", "text"],
    },
}

WAIT_FOR_ELEMENT_TOOL: dict[str, Any] = {
    "name": "chrome_wait_for_element",
    "description": "Wait for an element to appear on the page",
    "inputSchema": {
        "type": "object",
        "properties": {
            "selector": {"type": "string", "description": "CSS selector of the element to wait for"},
            "timeout": {"type": "number", "description": "Timeout (milliseconds)", "default": 10000},
        },
        "required": ["selector"],
    },
}

SCROLL_TOOL: dict[str, Any] = {
    "name": "chrome_scroll",
    "description": "Scroll the page",
    "inputSchema": {
        "type": "object",
        "properties": {
            "direction": {
                "type": "string",
                "description": "Scroll direction (up, down, top, bottom)",
                "default": "down",
            },
            "distance": {"type": "number", "description": "Scroll distance (pixels)", "default": 500},
            "smooth": {"type": "boolean", "description": "Smooth scrolling", "default": True},
        },
    },
}

CLOSE_TOOL: dict[str, Any] = {
    "name": "chrome_close",
    "description": "Close the Chrome browser",
    "inputSchema": {"type": "object", "properties": {}},
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    NAVIGATE_TOOL,
    SEARCH_TOOL,
    SCREENSHOT_TOOL,
    GET_CONTENT_TOOL,
    CLICK_TOOL,
    TYPE_TOOL,
    WAIT_FOR_ELEMENT_TOOL,
    SCROLL_TOOL,
    CLOSE_TOOL,
]
