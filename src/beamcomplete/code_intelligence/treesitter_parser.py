"""
Tree-sitter based parsing of Java source files.

Turns the text of an editor buffer into a concrete syntax tree plus the
compilation-unit facts the resolver needs (package and imports). Grammars
are loaded lazily from their pip packages on first use.
"""

import importlib
import threading
from dataclasses import dataclass, field
from typing import List, Optional


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class ImportInfo:
    """
    A single ``import`` declaration.

    Examples:
        import org.apache.beam.sdk.Pipeline;       -> path="org.apache.beam.sdk.Pipeline"
        import org.apache.beam.sdk.values.*;       -> path="org.apache.beam.sdk.values", is_wildcard=True
        import static org.junit.Assert.assertTrue; -> is_static=True
    """
    path: str
    is_static: bool = False
    is_wildcard: bool = False

    @property
    def simple_name(self) -> str:
        return self.path.rsplit(".", 1)[-1]


@dataclass
class ParsedSource:
    """Parse result for one buffer."""
    text: str
    source: bytes
    tree: object                           # tree_sitter.Tree
    language: str = "java"
    package: str = ""
    imports: List[ImportInfo] = field(default_factory=list)

    @property
    def root(self):
        return self.tree.root_node

    def byte_offset(self, char_offset: int) -> int:
        """Convert a character offset in ``text`` to a byte offset in ``source``."""
        return len(self.text[:char_offset].encode("utf-8"))

    def node_text(self, node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8")

    def node_at(self, start_byte: int, end_byte: int):
        """Smallest named node spanning the byte range."""
        return self.root.named_descendant_for_byte_range(start_byte, end_byte)


# =============================================================================
# LANGUAGE CONFIGURATION
# =============================================================================

LANGUAGE_TO_MODULE: dict = {
    "java": "tree_sitter_java",
}


# =============================================================================
# PARSER CLASS
# =============================================================================

class TreeSitterParser:
    """
    Java parser using the tree-sitter grammar.

    Usage:
        parser = TreeSitterParser()
        parsed = parser.parse_source(text)
        for imp in parsed.imports:
            print(imp.path)
    """

    def __init__(self) -> None:
        self._parsers: dict = {}
        self._languages: dict = {}
        # Parser instances must not be shared between threads
        self._lock = threading.Lock()

    def parse_source(self, text: str, language: str = "java") -> ParsedSource:
        """
        Parse source text.

        Args:
            text: Full buffer contents
            language: Grammar to use

        Returns:
            ParsedSource with tree, package and imports
        """
        source = text.encode("utf-8")
        with self._lock:
            parser = self._get_parser(language)
            tree = parser.parse(source)

        parsed = ParsedSource(text=text, source=source, tree=tree, language=language)
        parsed.package = self._extract_package(parsed)
        parsed.imports = self._extract_imports(parsed)
        return parsed

    def _get_parser(self, language: str):
        """Lazily load and cache a tree-sitter Parser for the given language."""
        if language in self._parsers:
            return self._parsers[language]

        import tree_sitter

        language_obj = self._load_language(language)
        parser = tree_sitter.Parser()
        parser.language = language_obj

        self._languages[language] = language_obj
        self._parsers[language] = parser
        return parser

    def _load_language(self, language: str):
        """Load a tree-sitter Language from its grammar package."""
        module_name = LANGUAGE_TO_MODULE.get(language)
        if module_name is None:
            raise RuntimeError(f"No tree-sitter grammar configured for '{language}'")

        import tree_sitter

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise RuntimeError(
                f"Grammar package '{module_name}' is not installed. "
                f"Install it with: pip install {module_name.replace('_', '-')}"
            ) from e

        return tree_sitter.Language(module.language())

    # =========================================================================
    # COMPILATION UNIT EXTRACTION
    # =========================================================================

    def _extract_package(self, parsed: ParsedSource) -> str:
        for node in parsed.root.named_children:
            if node.type != "package_declaration":
                continue
            for child in node.named_children:
                if child.type in ("scoped_identifier", "identifier"):
                    return parsed.node_text(child)
        return ""

    def _extract_imports(self, parsed: ParsedSource) -> List[ImportInfo]:
        imports = []
        for node in parsed.root.named_children:
            if node.type != "import_declaration":
                continue

            path = None
            is_static = False
            is_wildcard = False
            for child in node.children:
                if child.type in ("scoped_identifier", "identifier"):
                    path = parsed.node_text(child)
                elif child.type == "static":
                    is_static = True
                elif child.type == "asterisk":
                    is_wildcard = True

            if path:
                imports.append(ImportInfo(
                    path=path,
                    is_static=is_static,
                    is_wildcard=is_wildcard,
                ))
        return imports


_default_parser: Optional[TreeSitterParser] = None


def get_parser() -> TreeSitterParser:
    """Shared parser instance (grammar loading is not free)."""
    global _default_parser
    if _default_parser is None:
        _default_parser = TreeSitterParser()
    return _default_parser
