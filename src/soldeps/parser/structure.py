"""
Structural extraction: turns one file's syntax tree into a ParsedFile.

Source text is sliced by each node's `range` (inclusive character offsets)
when present, otherwise by its `loc`, whose end column points at the last
character of the node.
"""

import os
from pathlib import Path
from typing import List, Mapping, Optional

from soldeps.logging_config import logger
from soldeps.schemas import (
    ContractInfo,
    EnumInfo,
    FunctionInfo,
    ImportInfo,
    ParameterInfo,
    ParsedFile,
    SourceLocation,
    SourcePosition,
    StateVariableInfo,
    StructInfo,
    StructMember,
)
from .traverser import Node, location_from_node, node_kind

CONTRACT_KINDS = ("contract", "interface", "library", "abstract")

_EMPTY_LOCATION = SourceLocation(
    start=SourcePosition(line=1, column=0),
    end=SourcePosition(line=1, column=0),
)


def extract_parsed_file(ast: Node, source: str, file_path: str) -> ParsedFile:
    """
    Build the structural view of a file from its SourceUnit.

    Args:
        ast: Root SourceUnit node
        source: Full source text the tree was parsed from
        file_path: Path the file is indexed under

    Returns:
        ParsedFile with contracts, imports, pragmas and file-level definitions
    """
    extractor = _StructureExtractor(source, file_path)
    parsed = extractor.extract(ast)
    logger.debug(
        f"Extracted {len(parsed.contracts)} contracts, "
        f"{len(parsed.structs) + len(parsed.enums) + len(parsed.functions)} free definitions from {file_path}"
    )
    return parsed


def type_name_to_string(type_node: Optional[Node]) -> str:
    """Render a type-name node back to Solidity syntax (e.g. `mapping(address => Pool[])`)."""
    if type_node is None:
        return ""

    kind = node_kind(type_node)
    if kind == "ElementaryTypeName":
        return type_node.get("name") or ""
    if kind == "UserDefinedTypeName":
        return type_node.get("namePath") or ""
    if kind == "ArrayTypeName":
        base = type_name_to_string(type_node.get("baseTypeName"))
        length = type_node.get("length")
        length_text = ""
        if isinstance(length, Mapping):
            length_text = str(length.get("number") or length.get("name") or "")
        return f"{base}[{length_text}]"
    if kind == "Mapping":
        key = type_name_to_string(type_node.get("keyType"))
        value = type_name_to_string(type_node.get("valueType"))
        return f"mapping({key} => {value})"
    if kind == "FunctionTypeName":
        return "function"
    return ""


class _StructureExtractor:

    def __init__(self, source: str, file_path: str):
        self.source = source
        self.lines = source.split("\n")
        self.file_path = file_path

    def extract(self, ast: Node) -> ParsedFile:
        contracts: List[ContractInfo] = []
        imports: List[ImportInfo] = []
        pragmas: List[str] = []
        structs: List[StructInfo] = []
        enums: List[EnumInfo] = []
        functions: List[FunctionInfo] = []

        for child in ast.get("children") or []:
            kind = node_kind(child)
            if kind == "ContractDefinition":
                contracts.append(self._contract(child))
            elif kind == "ImportDirective":
                imports.append(self._import(child))
            elif kind == "PragmaDirective":
                pragmas.append(f"{child.get('name', '')} {child.get('value', '')}".strip())
            elif kind == "StructDefinition":
                structs.append(self._struct(child, None))
            elif kind == "EnumDefinition":
                enums.append(self._enum(child, None))
            elif kind == "FunctionDefinition":
                functions.append(self._function(child, None))

        return ParsedFile(
            file_path=self.file_path,
            contracts=contracts,
            imports=imports,
            pragmas=pragmas,
            structs=structs,
            enums=enums,
            functions=functions,
        )

    def _contract(self, node: Node) -> ContractInfo:
        name = node.get("name") or ""
        kind = node.get("kind") if node.get("kind") in CONTRACT_KINDS else "contract"

        functions: List[FunctionInfo] = []
        structs: List[StructInfo] = []
        enums: List[EnumInfo] = []
        state_variables: List[StateVariableInfo] = []

        for sub in node.get("subNodes") or []:
            sub_kind = node_kind(sub)
            if sub_kind == "FunctionDefinition":
                functions.append(self._function(sub, name))
            elif sub_kind == "StructDefinition":
                structs.append(self._struct(sub, name))
            elif sub_kind == "EnumDefinition":
                enums.append(self._enum(sub, name))
            elif sub_kind == "StateVariableDeclaration":
                state_variables.extend(self._state_variables(sub, name))

        base_contracts = []
        for specifier in node.get("baseContracts") or []:
            base_name = specifier.get("baseName") or {}
            if base_name.get("namePath"):
                base_contracts.append(base_name["namePath"])

        return ContractInfo(
            name=name,
            kind=kind,
            functions=functions,
            structs=structs,
            enums=enums,
            state_variables=state_variables,
            base_contracts=base_contracts,
            location=self._location(node),
            file_path=self.file_path,
        )

    def _function(self, node: Node, contract_name: Optional[str]) -> FunctionInfo:
        if node.get("isConstructor"):
            name = "constructor"
        elif node.get("isReceiveEther"):
            name = "receive"
        elif node.get("isFallback"):
            name = "fallback"
        else:
            name = node.get("name") or ""

        body = node.get("body")
        return FunctionInfo(
            name=name,
            visibility=node.get("visibility") or "default",
            state_mutability=node.get("stateMutability"),
            parameters=[self._parameter(p) for p in node.get("parameters") or []],
            return_parameters=[self._parameter(p) for p in node.get("returnParameters") or []],
            modifiers=[m.get("name", "") for m in node.get("modifiers") or []],
            body=self._slice(body) if isinstance(body, Mapping) else "",
            full_source=self._slice(node),
            location=self._location(node),
            file_path=self.file_path,
            contract_name=contract_name,
        )

    @staticmethod
    def _parameter(node: Node) -> ParameterInfo:
        return ParameterInfo(
            name=node.get("name") or "",
            type_name=type_name_to_string(node.get("typeName")),
            storage_location=node.get("storageLocation"),
        )

    def _struct(self, node: Node, contract_name: Optional[str]) -> StructInfo:
        members = [
            StructMember(name=m.get("name") or "", type_name=type_name_to_string(m.get("typeName")))
            for m in node.get("members") or []
        ]
        return StructInfo(
            name=node.get("name") or "",
            members=members,
            full_source=self._slice(node),
            location=self._location(node),
            file_path=self.file_path,
            contract_name=contract_name,
        )

    def _enum(self, node: Node, contract_name: Optional[str]) -> EnumInfo:
        return EnumInfo(
            name=node.get("name") or "",
            members=[m.get("name") or "" for m in node.get("members") or []],
            full_source=self._slice(node),
            location=self._location(node),
            file_path=self.file_path,
            contract_name=contract_name,
        )

    def _state_variables(self, node: Node, contract_name: str) -> List[StateVariableInfo]:
        full_source = self._slice(node)
        location = self._location(node)
        return [
            StateVariableInfo(
                name=var.get("name") or "",
                type_name=type_name_to_string(var.get("typeName")),
                visibility=var.get("visibility") or "default",
                full_source=full_source,
                location=location,
                file_path=self.file_path,
                contract_name=contract_name,
            )
            for var in node.get("variables") or []
        ]

    def _import(self, node: Node) -> ImportInfo:
        path = node.get("path") or ""
        absolute_path = None
        if path.startswith("."):
            absolute_path = os.path.normpath(str(Path(self.file_path).parent / path))

        symbols = []
        for alias in node.get("symbolAliases") or []:
            # [name, alias] pairs
            if isinstance(alias, (list, tuple)) and alias:
                symbols.append(alias[0])
            elif isinstance(alias, str):
                symbols.append(alias)

        return ImportInfo(path=path, absolute_path=absolute_path, symbols=symbols)

    def _location(self, node: Node) -> SourceLocation:
        return location_from_node(node) or _EMPTY_LOCATION

    def _slice(self, node: Node) -> str:
        """Return the exact source text a node spans."""
        span = node.get("range")
        if isinstance(span, (list, tuple)) and len(span) == 2:
            return self.source[span[0]:span[1] + 1]

        location = location_from_node(node)
        if location is None:
            return ""

        start_idx = location.start.line - 1
        end_idx = location.end.line - 1
        if start_idx < 0 or end_idx >= len(self.lines):
            return ""

        if start_idx == end_idx:
            return self.lines[start_idx][location.start.column:location.end.column + 1]

        parts = [self.lines[start_idx][location.start.column:]]
        parts.extend(self.lines[start_idx + 1:end_idx])
        parts.append(self.lines[end_idx][:location.end.column + 1])
        return "\n".join(parts)
