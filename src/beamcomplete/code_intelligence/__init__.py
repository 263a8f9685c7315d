"""
Code intelligence module - parse Java buffers and resolve symbols in them.
"""

from beamcomplete.code_intelligence.treesitter_parser import (
    ImportInfo,
    ParsedSource,
    TreeSitterParser,
    get_parser,
)

from beamcomplete.code_intelligence.java_resolver import (
    JavaSymbolResolver,
    ResolvedMethod,
    ResolvedType,
)

__all__ = [
    'ImportInfo',
    'ParsedSource',
    'TreeSitterParser',
    'get_parser',
    'JavaSymbolResolver',
    'ResolvedMethod',
    'ResolvedType',
]
