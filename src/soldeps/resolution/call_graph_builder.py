"""
Call Graph Builder.

Finds the internal calls a function makes and links each one to the
function definition it resolves to. Calls that cannot be resolved (external
calls, built-ins, undefined helpers) are dropped.
"""

import re
from typing import Iterable, List, Optional, Set, Tuple

from soldeps.index import WorkspaceIndex
from soldeps.logging_config import logger
from soldeps.schemas import FunctionCallInfo, FunctionInfo, ParsedFile, SourceLocation, SourcePosition
from .config import (
    BUILTIN_CALLS,
    CALL_PATTERNS,
    CONTROL_KEYWORDS,
    INTERFACE_NAME_PATTERN,
    RESOLUTION_CONFIG,
    TYPE_CASTS,
)


def split_arguments(text: str) -> List[str]:
    """
    Split the text after a call's opening parenthesis into argument texts.

    Stops at the matching close parenthesis (or end of text) and splits at
    top-level commas only.
    """
    args: List[str] = []
    depth = 0
    current: List[str] = []

    for char in text:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            if depth == 0:
                break
            depth -= 1
        elif char == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    last = "".join(current).strip()
    if last or args:
        args.append(last)
    return [a for a in args if a]


class CallGraphBuilder:
    """
    Builds the one-level call graph of a function.
    """

    def __init__(self):
        self.config = RESOLUTION_CONFIG

    def build_call_graph(
        self,
        function: FunctionInfo,
        current_file: str,
        index: WorkspaceIndex
    ) -> List[FunctionCallInfo]:
        """
        Find and resolve the calls made by a function.

        Args:
            function: Function to analyze
            current_file: Path of the file the function lives in (searched first)
            index: Workspace index

        Returns:
            Resolved calls in source order; never includes the function itself.
        """
        calls = self.extract_calls(function)
        resolved: List[FunctionCallInfo] = []

        for call in calls:
            target = self._find_function(call.name, index.search_order(current_file))
            if target is None:
                logger.debug(f"Dropping unresolved call {call.expression} in {function.name}")
                continue
            resolved.append(call.model_copy(update={"resolved_function": target}))

        logger.debug(
            f"Calls for {function.name}: {len(calls)} candidates, {len(resolved)} resolved"
        )
        return resolved

    def extract_calls(self, function: FunctionInfo) -> List[FunctionCallInfo]:
        """
        Scan a function's source line by line for call sites.

        A call is keyed by (line, expression) so the same call matched by
        more than one pattern is reported once.
        Calls to the function itself are left out.
        """
        calls: List[FunctionCallInfo] = []
        seen: Set[Tuple[int, str]] = set()
        start_line = function.location.start.line

        for offset, line in enumerate(function.full_source.split("\n")):
            line_number = start_line + offset

            for pattern_name, pattern in CALL_PATTERNS.items():
                for match in pattern.finditer(line):
                    name = match.group(1)
                    if self.config["exclude_self_calls"] and name == function.name:
                        continue
                    expression = f"this.{name}" if pattern_name == "this" else name

                    key = (line_number, expression)
                    if key in seen or self.should_skip_call(name, line):
                        continue
                    seen.add(key)

                    calls.append(FunctionCallInfo(
                        name=name,
                        expression=expression,
                        arguments=split_arguments(line[match.end():]),
                        location=SourceLocation(
                            start=SourcePosition(line=line_number, column=match.start()),
                            end=SourcePosition(line=line_number, column=match.end()),
                        ),
                    ))

        return calls

    def should_skip_call(self, name: str, line: str) -> bool:
        """True for built-ins, keywords, casts and calls on other contracts."""
        if name in BUILTIN_CALLS or name in CONTROL_KEYWORDS or name in TYPE_CASTS:
            return True

        escaped = re.escape(name)

        # Interface cast used as the callee: IERC20(token)
        if INTERFACE_NAME_PATTERN.match(name) and re.search(rf"{escaped}\s*\([^)]+\)", line):
            return True

        # Method called on an interface cast: IERC20(token).name(...)
        if re.search(rf"I[A-Z][a-zA-Z0-9_]*\([^)]*\)\.{escaped}\s*\(", line):
            return True

        # Method called on another contract variable: pool.name(...)
        if re.search(rf"\w+\.{escaped}\s*\(", line) and f"this.{name}" not in line:
            if re.search(rf"([a-z_][a-zA-Z0-9_]*)\.{escaped}\s*\(", line):
                return True

        return False

    @staticmethod
    def _functions_in(parsed: ParsedFile) -> Iterable[FunctionInfo]:
        for contract in parsed.contracts:
            yield from contract.functions
        yield from parsed.functions

    def _find_function(self, name: str, files: Iterable[ParsedFile]) -> Optional[FunctionInfo]:
        for parsed in files:
            for candidate in self._functions_in(parsed):
                if candidate.name == name:
                    return candidate
        return None

    def resolve_single_function(self, function_name: str, index: WorkspaceIndex) -> Optional[FunctionInfo]:
        """
        Resolve a function by name across the whole workspace.

        Qualified names (`this.name`, `Contract.name`) are reduced to the
        local name.
        """
        name = function_name.split(".")[-1]
        return self._find_function(name, index.search_order())

    def function_exists(self, function_name: str, index: WorkspaceIndex) -> bool:
        return self.resolve_single_function(function_name, index) is not None

    def find_function_candidates(self, function_name: str, index: WorkspaceIndex) -> List[FunctionInfo]:
        """Every function definition with this name, in index order."""
        name = function_name.split(".")[-1]
        return [
            candidate
            for parsed in index.search_order()
            for candidate in self._functions_in(parsed)
            if candidate.name == name
        ]

    @staticmethod
    def get_call_depth(calls: List[FunctionCallInfo]) -> int:
        """Depth of a one-level call graph: 1 if any call resolved, else 0."""
        return 1 if any(call.resolved_function is not None for call in calls) else 0
