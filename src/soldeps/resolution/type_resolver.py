"""
Type resolution: which user-defined structs and enums a function depends on.

Candidates come from declared parameter types and from text scans of the
function source; each surviving candidate is looked up across the workspace,
current file first.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from soldeps.index import WorkspaceIndex
from soldeps.logging_config import logger
from soldeps.schemas import EnumInfo, FunctionInfo, ParsedFile, StructInfo, TypeReference
from .config import (
    ELEMENTARY_TYPES,
    INTERFACE_NAME_PATTERN,
    RESOLUTION_CONFIG,
    SKIP_NAMES,
    TYPE_NAME_PATTERNS,
    TYPE_PATTERNS,
)


def local_name(type_name: str) -> str:
    """`Vault.Pool` -> `Pool`."""
    return type_name.split(".")[-1]


def split_qualified(type_name: str) -> Tuple[Optional[str], str]:
    """Split a possibly contract-qualified name into (contract, local name)."""
    parts = type_name.split(".")
    contract = parts[0] if len(parts) > 1 else None
    return contract, parts[-1]


class TypeResolver:
    """
    Resolves the custom types referenced by a function.
    """

    def __init__(self):
        self.config = RESOLUTION_CONFIG

    def resolve_types(
        self,
        function: FunctionInfo,
        current_file: str,
        index: WorkspaceIndex
    ) -> List[TypeReference]:
        """
        Find every struct/enum a function references and resolve it.

        Args:
            function: Function to analyze
            current_file: Path of the file the function lives in (searched first)
            index: Workspace index

        Returns:
            Resolved references in order of first appearance; unresolved
            candidates are dropped.
        """
        candidates = self.extract_type_candidates(function)
        resolved: List[TypeReference] = []

        for candidate in candidates:
            reference = self._resolve(candidate, index.search_order(current_file))
            if reference is not None:
                resolved.append(reference)

        logger.debug(
            f"Types for {function.name}: {len(candidates)} candidates, {len(resolved)} resolved"
        )
        return resolved

    def extract_type_candidates(self, function: FunctionInfo) -> List[str]:
        """
        Collect candidate type names, de-duplicated by local name.

        Parameters and return parameters come first, then body matches in
        pattern order.
        """
        found: Dict[str, str] = {}

        for param in list(function.parameters) + list(function.return_parameters):
            for name in self._names_in_type(param.type_name):
                if name[:1].isupper():
                    self._add_if_valid(name, found)

        source = function.full_source
        for match in TYPE_PATTERNS["declaration_with_location"].finditer(source):
            self._add_if_valid(match.group(1), found)
        for match in TYPE_PATTERNS["declaration"].finditer(source):
            self._add_if_valid(match.group(1), found)
        for match in TYPE_PATTERNS["instantiation"].finditer(source):
            self._add_if_valid(match.group(1), found)
        for match in TYPE_PATTERNS["member_access"].finditer(source):
            self._add_if_valid(match.group(1), found)
        for match in TYPE_PATTERNS["comparison"].finditer(source):
            name = match.group(1) or match.group(2)
            if name:
                self._add_if_valid(name, found)
        for match in TYPE_PATTERNS["generic"].finditer(source):
            name = match.group(1)
            # Constants and enum members are all caps
            if name == name.upper() and not name.startswith("I"):
                continue
            self._add_if_valid(name, found)

        return list(found.values())

    def _names_in_type(self, type_name: str) -> List[str]:
        """Unwrap mappings and arrays down to their element type names."""
        type_name = type_name.strip()
        if not type_name:
            return []

        mapping = TYPE_NAME_PATTERNS["mapping"].match(type_name)
        if mapping:
            return self._names_in_type(mapping.group(1)) + self._names_in_type(mapping.group(2))

        array = TYPE_NAME_PATTERNS["array"].match(type_name)
        if array:
            return self._names_in_type(array.group(1))

        return [type_name]

    def _add_if_valid(self, name: str, found: Dict[str, str]) -> None:
        if not self.is_candidate(name):
            return
        key = local_name(name)
        if key not in found:
            found[key] = name

    def is_candidate(self, name: str) -> bool:
        """Apply the exclusion tables to a candidate type name."""
        if name.lower() in ELEMENTARY_TYPES:
            return False
        if name in SKIP_NAMES:
            return False
        if len(name) < self.config["min_type_name_length"]:
            return False
        if self.config["skip_interface_types"] and INTERFACE_NAME_PATTERN.match(name):
            return False
        return True

    def _resolve(self, type_name: str, files: Iterable[ParsedFile]) -> Optional[TypeReference]:
        contract_name, name = split_qualified(type_name)
        for parsed in files:
            reference = self.find_type_in_file(name, contract_name, parsed)
            if reference is not None:
                return reference
        return None

    def find_type_in_file(
        self,
        name: str,
        contract_name: Optional[str],
        parsed: ParsedFile
    ) -> Optional[TypeReference]:
        """
        Look a type up in one file.

        Within each contract structs are checked before enums. A qualifier
        restricts the search to that contract; unqualified names fall back
        to file-level definitions.
        """
        for contract in parsed.contracts:
            if contract_name and contract.name != contract_name:
                continue
            display = f"{contract.name}.{name}" if contract_name else name

            for struct in contract.structs:
                if struct.name == name:
                    return TypeReference(name=display, kind="struct", definition=struct)
            for enum in contract.enums:
                if enum.name == name:
                    return TypeReference(name=display, kind="enum", definition=enum)

        if contract_name:
            return None

        for struct in parsed.structs:
            if struct.name == name:
                return TypeReference(name=name, kind="struct", definition=struct)
        for enum in parsed.enums:
            if enum.name == name:
                return TypeReference(name=name, kind="enum", definition=enum)
        return None

    def resolve_single_type(self, type_name: str, index: WorkspaceIndex) -> Optional[TypeReference]:
        """
        Resolve one (possibly qualified) type name across the whole workspace.

        Files are searched in index order.
        """
        return self._resolve(type_name, index.search_order())

    def type_exists(self, type_name: str, index: WorkspaceIndex) -> bool:
        return self.resolve_single_type(type_name, index) is not None

    def find_type_candidates(self, type_name: str, index: WorkspaceIndex) -> List[TypeReference]:
        """Every definition matching a type name, one per defining file at most."""
        contract_name, name = split_qualified(type_name)
        candidates = []
        for parsed in index.search_order():
            reference = self.find_type_in_file(name, contract_name, parsed)
            if reference is not None:
                candidates.append(reference)
        return candidates

    @staticmethod
    def get_struct_source(struct: StructInfo) -> str:
        return struct.full_source

    @staticmethod
    def get_enum_source(enum: EnumInfo) -> str:
        return enum.full_source
