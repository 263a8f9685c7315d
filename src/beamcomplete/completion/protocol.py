"""
Protocol definitions for editor <-> beamcomplete communication.

Uses JSON-RPC 2.0 over stdio, one message per line.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass
import json


# JSON-RPC error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
REQUEST_CANCELLED = -32800


@dataclass
class CursorPosition:
    """Represents cursor position in a file."""
    line: int
    character: int


@dataclass
class CompletionRequest:
    """Request for completion suggestions (`getSuggestion` params)."""
    file_path: str
    content: str
    cursor: Optional[CursorPosition] = None
    offset: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompletionRequest':
        """
        Create request from dictionary.

        Either ``offset`` or ``cursor`` must be given; ``offset`` wins.

        Raises:
            ValueError: If the parameters are malformed
        """
        content = data.get('content')
        if not isinstance(content, str):
            raise ValueError("'content' must be a string")

        offset = data.get('offset')
        cursor = None
        if offset is None:
            cursor_data = data.get('cursor')
            if not isinstance(cursor_data, dict):
                raise ValueError("Either 'offset' or 'cursor' is required")
            cursor = CursorPosition(
                line=int(cursor_data.get('line', 0)),
                character=int(cursor_data.get('character', 0)),
            )
        elif not isinstance(offset, int):
            raise ValueError("'offset' must be an integer")

        return cls(
            file_path=data.get('file_path', ''),
            content=content,
            cursor=cursor,
            offset=offset,
        )


class JSONRPCMessage:
    """JSON-RPC 2.0 message format."""

    @staticmethod
    def response(result: Any, id: Any) -> str:
        """Create a JSON-RPC response."""
        return json.dumps({
            'jsonrpc': '2.0',
            'result': result,
            'id': id
        })

    @staticmethod
    def error(code: int, message: str, id: Any, data: Optional[Dict[str, Any]] = None) -> str:
        """Create a JSON-RPC error response."""
        error = {
            'code': code,
            'message': message
        }
        if data is not None:
            error['data'] = data
        return json.dumps({
            'jsonrpc': '2.0',
            'error': error,
            'id': id
        })

    @staticmethod
    def parse(message: str) -> Dict[str, Any]:
        """Parse a JSON-RPC message."""
        return json.loads(message)
