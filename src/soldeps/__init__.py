"""
soldeps - Solidity function dependency resolver

Finds the structs, enums, internal calls and state variables a function
depends on, resolved across a multi-file workspace.
"""

__version__ = "0.3.0"

# Core exports
from soldeps.parser import parse_source, ASTTraverser
from soldeps.index import WorkspaceIndex, build_workspace_index, reindex_file, load_workspace
from soldeps.resolution import (
    FunctionAnalyzer,
    InheritanceResolver,
    analyze_function_at,
    lookup_symbol,
    find_implementations,
)
from soldeps.schemas import FunctionAnalysis, LookupResult, ParsedFile

__all__ = [
    "__version__",
    "parse_source",
    "ASTTraverser",
    "WorkspaceIndex",
    "build_workspace_index",
    "reindex_file",
    "load_workspace",
    "FunctionAnalyzer",
    "InheritanceResolver",
    "analyze_function_at",
    "lookup_symbol",
    "find_implementations",
    "FunctionAnalysis",
    "LookupResult",
    "ParsedFile",
]
