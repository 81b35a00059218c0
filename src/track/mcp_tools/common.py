"""Pure helpers shared across MCP tool modules.

This module has NO dependency on ``mcp_server`` module globals, so it can
be imported freely without triggering circular-import issues.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.types import TextContent

from track.types.api import ErrorCode, ErrorResponse


def _text(content: object) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _error(message: str, code: ErrorCode, **details: Any) -> list[TextContent]:
    payload = ErrorResponse(error=message, code=code)
    if details:
        payload["details"] = details
    return _text(payload)


def _string_list(arguments: dict[str, Any], key: str) -> list[str] | None:
    """Return the list under *key*, or None when it is not a list of strings."""
    value = arguments.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return value
