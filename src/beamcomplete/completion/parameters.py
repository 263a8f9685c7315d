"""
Completion parameters builder.

Turns an editor buffer plus a caret position into the parsed view the
trigger matcher works on. The caret location is made parseable by
inserting a dummy identifier into a copy of the buffer, so that
``p.apply(|)`` parses as ``p.apply(BeamCompletionDummy)`` and the caret
always sits on an identifier leaf.
"""

from dataclasses import dataclass
from typing import Any, Optional

from beamcomplete.code_intelligence.treesitter_parser import (
    ParsedSource,
    TreeSitterParser,
    get_parser,
)


DUMMY_IDENTIFIER = "BeamCompletionDummy"

# Text appended after the dummy identifier, tried in order while the caret
# lands inside a syntax error. Closes an argument list still being typed:
# `p.apply(Co|` parses as `p.apply(CoBeamCompletionDummy)`.
ERROR_RECOVERY_SUFFIXES = ("", ")", ");")


@dataclass
class CompletionParameters:
    """Everything a contributor needs to know about one completion request."""
    file_path: str
    original_text: str
    offset: int                      # caret offset in original_text (characters)
    parsed: ParsedSource             # parse of the copy with the dummy identifier
    position: Optional[object]       # leaf node at the caret in the copy
    prefix: str = ""                 # identifier characters typed before the caret
    request_id: Optional[Any] = None

    @property
    def code_to_complete(self) -> str:
        """File text up to the caret."""
        return self.original_text[:self.offset]


class CompletionParametersBuilder:
    """Builds CompletionParameters from file content and caret position."""

    def __init__(self, parser: Optional[TreeSitterParser] = None):
        """
        Initialize the builder.

        Args:
            parser: Parser to use (default: shared instance)
        """
        self.parser = parser or get_parser()

    def build(
        self,
        file_path: str,
        content: str,
        offset: int,
        request_id: Optional[Any] = None,
    ) -> CompletionParameters:
        """
        Build parameters for a caret at a character offset.

        Args:
            file_path: Path of the buffer (informational)
            content: Full buffer text
            offset: Caret offset, 0 <= offset <= len(content)
            request_id: Identifier of the originating request, if any

        Raises:
            ValueError: If the offset lies outside the buffer
        """
        if offset < 0 or offset > len(content):
            raise ValueError(f"Caret offset {offset} outside buffer of length {len(content)}")

        parsed, position = self._parse_with_dummy(content, offset, "")
        for suffix in ERROR_RECOVERY_SUFFIXES[1:]:
            if not self._inside_error(position):
                break
            recovered, recovered_position = self._parse_with_dummy(content, offset, suffix)
            if not self._inside_error(recovered_position):
                parsed, position = recovered, recovered_position

        return CompletionParameters(
            file_path=file_path,
            original_text=content,
            offset=offset,
            parsed=parsed,
            position=position,
            prefix=self._typed_prefix(parsed, position),
            request_id=request_id,
        )

    def build_at(
        self,
        file_path: str,
        content: str,
        line: int,
        character: int,
        request_id: Optional[Any] = None,
    ) -> CompletionParameters:
        """Build parameters for a caret given as 0-indexed line/character."""
        offset = self.offset_for(content, line, character)
        return self.build(file_path, content, offset, request_id=request_id)

    @staticmethod
    def offset_for(content: str, line: int, character: int) -> int:
        """
        Convert a 0-indexed line/character position to a character offset.

        Positions past the end of a line clamp to the line end; lines past
        the end of the buffer clamp to the last line.
        """
        if line < 0 or character < 0:
            raise ValueError(f"Invalid cursor position {line}:{character}")

        lines = content.split('\n')
        if line >= len(lines):
            line = len(lines) - 1

        offset = sum(len(text) + 1 for text in lines[:line])
        return offset + min(character, len(lines[line]))

    def _parse_with_dummy(self, content: str, offset: int, suffix: str):
        copy = content[:offset] + DUMMY_IDENTIFIER + suffix + content[offset:]
        parsed = self.parser.parse_source(copy)

        start = parsed.byte_offset(offset)
        end = start + len(DUMMY_IDENTIFIER.encode("utf-8"))
        return parsed, parsed.node_at(start, end)

    @staticmethod
    def _inside_error(position) -> bool:
        if position is None:
            return True
        node = position
        while node is not None:
            if node.type == "ERROR":
                return True
            node = node.parent
        return False

    @staticmethod
    def _typed_prefix(parsed: ParsedSource, position) -> str:
        if position is None or position.type != "identifier":
            return ""
        text = parsed.node_text(position)
        index = text.find(DUMMY_IDENTIFIER)
        return text[:index] if index > 0 else ""
