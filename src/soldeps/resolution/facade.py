"""
Public API for dependency resolution.

Thin entry points over the resolvers for callers that do not need to keep
an analyzer around.
"""

from typing import List, Optional

from soldeps.index import WorkspaceIndex
from soldeps.logging_config import logger
from soldeps.schemas import FunctionAnalysis, ImplementationInfo, LookupKind, LookupResult
from .function_analyzer import FunctionAnalyzer
from .inheritance_resolver import InheritanceResolver


def analyze_function_at(index: WorkspaceIndex, file_path: str, line: int, column: int) -> FunctionAnalysis:
    """
    Analyze the function enclosing a zero-based editor position.

    Args:
        index: Workspace index
        file_path: Indexed file path
        line: Zero-based line
        column: Zero-based column

    Returns:
        FunctionAnalysis with resolved types, inner calls and state variables
    """
    analysis = FunctionAnalyzer(index).analyze(file_path, line, column)
    logger.info(
        f"Analyzed {analysis.function.name}: {len(analysis.referenced_types)} types, "
        f"{len(analysis.inner_calls)} calls, {len(analysis.state_variables)} state variables"
    )
    return analysis


def lookup_symbol(
    index: WorkspaceIndex,
    name: str,
    kind: LookupKind,
    contract_name: Optional[str] = None
) -> LookupResult:
    """Resolve one struct, enum, type, function or state variable by name."""
    return FunctionAnalyzer(index).lookup(name, kind, contract_name)


def find_implementations(index: WorkspaceIndex, interface_name: str, method_name: str) -> List[ImplementationInfo]:
    """Concrete implementations of an interface (or base contract) method."""
    return InheritanceResolver(index).find_implementations(interface_name, method_name)
