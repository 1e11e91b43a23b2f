"""
This facade exposes the public API for the parser module.
"""
from .facade import parse_source, parsed_from_ast, ParseFunction
from .structure import extract_parsed_file, type_name_to_string
from .traverser import ASTTraverser, node_kind, location_from_node

__all__ = [
    "parse_source",
    "parsed_from_ast",
    "ParseFunction",
    "extract_parsed_file",
    "type_name_to_string",
    "ASTTraverser",
    "node_kind",
    "location_from_node",
]
