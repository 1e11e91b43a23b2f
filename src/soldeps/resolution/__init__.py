"""
Resolution package: type, call, state-variable and inheritance resolution
over a workspace index, orchestrated by FunctionAnalyzer.
"""

from .facade import (
    analyze_function_at,
    lookup_symbol,
    find_implementations,
)
from .type_resolver import TypeResolver
from .call_graph_builder import CallGraphBuilder, split_arguments
from .state_variable_resolver import StateVariableResolver
from .inheritance_resolver import InheritanceResolver
from .function_analyzer import FunctionAnalyzer
from .variable_types import extract_variable_types
from .config import (
    RESOLUTION_CONFIG,
    INHERITANCE_CONFIG,
    validate_resolution_config,
)

__all__ = [
    "analyze_function_at",
    "lookup_symbol",
    "find_implementations",
    "TypeResolver",
    "CallGraphBuilder",
    "split_arguments",
    "StateVariableResolver",
    "InheritanceResolver",
    "FunctionAnalyzer",
    "extract_variable_types",
    "RESOLUTION_CONFIG",
    "INHERITANCE_CONFIG",
    "validate_resolution_config",
]
