"""
Function analysis: the orchestrator behind a dependency view.

Given a cursor position it finds the enclosing function, then runs the type,
call and state-variable resolvers against the workspace index. It also
answers on-demand single-symbol lookups and turns results into
presentation-neutral blocks and arrows.
"""

import re
from typing import Dict, List, Optional, Tuple

from soldeps.exceptions import ConfigError, FileNotIndexedError, PositionNotInFunctionError
from soldeps.index import WorkspaceIndex
from soldeps.logging_config import logger
from soldeps.parser import ASTTraverser, location_from_node
from soldeps.schemas import (
    Arrow,
    FunctionAnalysis,
    FunctionInfo,
    ImplementationInfo,
    LookupKind,
    LookupResult,
    StateVariableInfo,
    SymbolBlock,
    TypeReference,
)
from .call_graph_builder import CallGraphBuilder
from .config import LOOKUP_KINDS
from .inheritance_resolver import InheritanceResolver
from .state_variable_resolver import StateVariableResolver
from .type_resolver import TypeResolver, split_qualified
from .variable_types import extract_variable_types


class FunctionAnalyzer:
    """
    Coordinates the resolvers over one workspace index.

    The analyzer owns its index; to analyze against a changed workspace,
    use with_index() to get a fresh analyzer.
    """

    def __init__(self, index: WorkspaceIndex):
        self.index = index
        self.traverser = ASTTraverser()
        self.type_resolver = TypeResolver()
        self.call_graph_builder = CallGraphBuilder()
        self.state_variable_resolver = StateVariableResolver()
        self._inheritance_resolver: Optional[InheritanceResolver] = None
        self._lookup_cache: Dict[Tuple[str, str, Optional[str]], LookupResult] = {}

    def with_index(self, index: WorkspaceIndex) -> "FunctionAnalyzer":
        return FunctionAnalyzer(index)

    def analyze(self, file_path: str, line: int, column: int) -> FunctionAnalysis:
        """
        Analyze the function enclosing an editor position.

        Args:
            file_path: Indexed file path
            line: Zero-based editor line
            column: Zero-based column

        Returns:
            FunctionAnalysis for the enclosing function

        Raises:
            FileNotIndexedError: If the file is not in the index
            PositionNotInFunctionError: If no function contains the position
        """
        if file_path not in self.index:
            raise FileNotIndexedError(file_path)

        # Parser lines are 1-based
        function = self.find_function_at(file_path, line + 1, column)
        if function is None:
            raise PositionNotInFunctionError(file_path, line, column)

        return self.analyze_function(function, file_path)

    def find_function_at(self, file_path: str, line: int, column: int) -> Optional[FunctionInfo]:
        """
        Find the innermost function containing a 1-based line / 0-based column.

        Uses the stored syntax tree when the index has one, otherwise the
        function spans recorded in the ParsedFile.
        """
        parsed = self.index.get(file_path)
        if parsed is None:
            return None

        functions = [f for contract in parsed.contracts for f in contract.functions]
        functions.extend(parsed.functions)

        ast = self.index.get_ast(file_path)
        if ast is not None:
            node = self.traverser.find_enclosing(ast, line, column)
            if node is None:
                return None
            location = location_from_node(node)
            for function in functions:
                if function.location == location:
                    return function
            logger.debug(f"Enclosing node at {file_path}:{line} has no extracted function")
            return None

        best: Optional[FunctionInfo] = None
        for function in functions:
            if not function.location.contains(line, column):
                continue
            if best is None or function.location.extent() < best.location.extent():
                best = function
        return best

    def analyze_function(self, function: FunctionInfo, file_path: Optional[str] = None) -> FunctionAnalysis:
        """Resolve everything a known function depends on."""
        current_file = file_path or function.file_path
        logger.debug(f"Analyzing {function.name} in {current_file}")

        referenced_types = self.type_resolver.resolve_types(function, current_file, self.index)
        inner_calls = self.call_graph_builder.build_call_graph(function, current_file, self.index)

        contract = self.state_variable_resolver.find_contract_for_function(function, self.index)
        state_variables: List[StateVariableInfo] = []
        if contract is not None:
            # References are matched against this contract, so its own declarations answer them
            declared = {var.name: var for var in contract.state_variables}
            for name in self.state_variable_resolver.ordered_state_variable_references(function, contract):
                state_variables.append(declared[name])

        return FunctionAnalysis(
            function=function,
            contract_name=contract.name if contract is not None else function.contract_name,
            referenced_types=referenced_types,
            inner_calls=inner_calls,
            state_variables=state_variables,
        )

    # Point queries

    def resolve_single_type(self, type_name: str) -> Optional[TypeReference]:
        return self.type_resolver.resolve_single_type(type_name, self.index)

    def resolve_single_function(self, function_name: str) -> Optional[FunctionInfo]:
        return self.call_graph_builder.resolve_single_function(function_name, self.index)

    def resolve_state_variable(self, name: str, contract_name: Optional[str] = None) -> Optional[StateVariableInfo]:
        return self.state_variable_resolver.resolve_state_variable(name, contract_name, self.index)

    def lookup(self, name: str, kind: LookupKind, contract_name: Optional[str] = None) -> LookupResult:
        """
        Resolve one symbol on demand.

        Results are cached per (kind, name, contract), so repeated requests
        return the same LookupResult object.

        Raises:
            ConfigError: If kind is not a known lookup kind
        """
        if kind not in LOOKUP_KINDS:
            raise ConfigError(f"Unknown lookup kind '{kind}', expected one of {', '.join(LOOKUP_KINDS)}")

        key = (kind, name, contract_name)
        cached = self._lookup_cache.get(key)
        if cached is not None:
            return cached

        if kind == "function":
            result = self._lookup_function(name)
        elif kind == "statevar":
            result = self._lookup_state_variable(name, contract_name)
        else:
            result = self._lookup_type(name, kind, contract_name)

        if result.ambiguous:
            logger.debug(f"Ambiguous {kind} {name}: defined in {', '.join(result.candidate_files)}")

        self._lookup_cache[key] = result
        return result

    def _lookup_type(self, name: str, kind: LookupKind, contract_name: Optional[str]) -> LookupResult:
        """The contract hint is tried first; the bare name is the fallback."""
        candidates: List[TypeReference] = []
        if contract_name and split_qualified(name)[0] is None:
            candidates = self._type_candidates(f"{contract_name}.{name}", kind)
        if not candidates:
            candidates = self._type_candidates(name, kind)

        if not candidates:
            return _not_found(name, kind)

        files = _unique([c.definition.file_path for c in candidates if c.definition is not None])
        return LookupResult(
            name=name,
            kind=kind,
            success=True,
            type_reference=candidates[0],
            ambiguous=len(candidates) > 1,
            candidate_files=files,
        )

    def _type_candidates(self, type_name: str, kind: LookupKind) -> List[TypeReference]:
        candidates = self.type_resolver.find_type_candidates(type_name, self.index)
        if kind in ("struct", "enum"):
            candidates = [c for c in candidates if c.kind == kind]
        return candidates

    def _lookup_function(self, name: str) -> LookupResult:
        candidates = self.call_graph_builder.find_function_candidates(name, self.index)
        if not candidates:
            return _not_found(name, "function")

        files = _unique([c.file_path for c in candidates])
        return LookupResult(
            name=name,
            kind="function",
            success=True,
            function_info=candidates[0],
            ambiguous=len(candidates) > 1,
            candidate_files=files,
        )

    def _lookup_state_variable(self, name: str, contract_name: Optional[str]) -> LookupResult:
        variable = self.state_variable_resolver.resolve_state_variable(name, contract_name, self.index)
        if variable is None:
            return _not_found(name, "statevar")

        candidates = self.state_variable_resolver.find_state_variable_candidates(name, self.index)
        return LookupResult(
            name=name,
            kind="statevar",
            success=True,
            state_variable=variable,
            ambiguous=len(candidates) > 1,
            candidate_files=_unique([c.file_path for c in candidates]),
        )

    def lookup_variable(self, variable_name: str, function: FunctionInfo) -> LookupResult:
        """
        Resolve a variable used in a function to the struct or enum it is
        declared with, so importing `pool_` brings in `DepositPool`.
        """
        type_name = extract_variable_types(function.full_source).get(variable_name)
        if type_name is None:
            return _not_found(variable_name, "type")
        return self.lookup(type_name, "type", function.contract_name)

    # Inheritance

    @property
    def inheritance_resolver(self) -> InheritanceResolver:
        if self._inheritance_resolver is None:
            self._inheritance_resolver = InheritanceResolver(self.index)
        return self._inheritance_resolver

    def find_implementations(self, interface_name: str, method_name: str) -> List[ImplementationInfo]:
        return self.inheritance_resolver.find_implementations(interface_name, method_name)

    # Dependency-view data

    def build_blocks(self, analysis: FunctionAnalysis) -> Tuple[List[SymbolBlock], List[Arrow]]:
        """
        Turn an analysis into view blocks: the analyzed function plus one
        block per referenced type, inner call and state variable, with an
        arrow from the line that uses each one.
        """
        function = analysis.function
        main = SymbolBlock(
            id="main",
            title=function.name,
            subtitle=analysis.contract_name,
            source_code=function.full_source,
            category="main",
            file_path=function.file_path,
            start_line=function.location.start.line,
        )
        blocks: List[SymbolBlock] = [main]
        arrows: List[Arrow] = []
        seen = {main.id}

        for reference in analysis.referenced_types:
            block = _type_block(reference)
            if block is None:
                continue
            source_line = _first_line_mentioning(function, split_qualified(reference.name)[1])
            self._connect(blocks, arrows, seen, block, main.id, source_line)

        for call in analysis.inner_calls:
            target = call.resolved_function
            if target is None:
                continue
            block = _function_block(target)
            self._connect(blocks, arrows, seen, block, main.id, call.location.start.line, label=call.expression)

        for variable in analysis.state_variables:
            block = _state_variable_block(variable)
            source_line = _first_line_mentioning(function, variable.name)
            self._connect(blocks, arrows, seen, block, main.id, source_line)

        return blocks, arrows

    def build_import_blocks(
        self,
        result: LookupResult,
        source_block_id: str,
        source_line: int
    ) -> Tuple[List[SymbolBlock], List[Arrow]]:
        """Block and arrow for a successful lookup, imported from an existing block."""
        if not result.success:
            return [], []

        if result.type_reference is not None:
            block = _type_block(result.type_reference)
        elif result.function_info is not None:
            block = _function_block(result.function_info)
        elif result.state_variable is not None:
            block = _state_variable_block(result.state_variable)
        else:
            block = None

        if block is None:
            return [], []

        blocks: List[SymbolBlock] = []
        arrows: List[Arrow] = []
        self._connect(blocks, arrows, set(), block, source_block_id, source_line)
        return blocks, arrows

    @staticmethod
    def _connect(
        blocks: List[SymbolBlock],
        arrows: List[Arrow],
        seen: set,
        block: SymbolBlock,
        source_block_id: str,
        source_line: int,
        label: Optional[str] = None
    ) -> None:
        if block.id not in seen:
            seen.add(block.id)
            blocks.append(block)
        arrow_id = f"arrow-{source_block_id}-{block.id}-{source_line}"
        taken = {arrow.id for arrow in arrows}
        if arrow_id in taken:
            # Same target from the same line: number the repeats
            suffix = 2
            while f"{arrow_id}-{suffix}" in taken:
                suffix += 1
            arrow_id = f"{arrow_id}-{suffix}"

        arrows.append(Arrow(
            id=arrow_id,
            source_block_id=source_block_id,
            source_line=source_line,
            target_block_id=block.id,
            target_line=block.start_line,
            type=block.category,
            label=label,
        ))


def _not_found(name: str, kind: LookupKind) -> LookupResult:
    return LookupResult(name=name, kind=kind, success=False, error=f"no definition found for {name}")


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _first_line_mentioning(function: FunctionInfo, name: str) -> int:
    """1-based line of the first whole-word mention of a name in a function."""
    pattern = re.compile(rf"\b{re.escape(name)}\b")
    for offset, line in enumerate(function.full_source.split("\n")):
        if pattern.search(line):
            return function.location.start.line + offset
    return function.location.start.line


def _type_block(reference: TypeReference) -> Optional[SymbolBlock]:
    definition = reference.definition
    if definition is None or reference.kind not in ("struct", "enum"):
        return None
    return SymbolBlock(
        id=f"{reference.kind}-{split_qualified(reference.name)[1]}",
        title=reference.name,
        subtitle=definition.contract_name,
        source_code=definition.full_source,
        category=reference.kind,
        file_path=definition.file_path,
        start_line=definition.location.start.line,
    )


def _function_block(function: FunctionInfo) -> SymbolBlock:
    return SymbolBlock(
        id=f"function-{function.name}",
        title=function.name,
        subtitle=function.contract_name,
        source_code=function.full_source,
        category="function",
        file_path=function.file_path,
        start_line=function.location.start.line,
    )


def _state_variable_block(variable: StateVariableInfo) -> SymbolBlock:
    return SymbolBlock(
        id=f"statevar-{variable.name}",
        title=variable.name,
        subtitle=variable.contract_name,
        source_code=variable.full_source,
        category="statevar",
        file_path=variable.file_path,
        start_line=variable.location.start.line,
    )
