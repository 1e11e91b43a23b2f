from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Literal, Union


class FrozenModel(BaseModel):
    """
    Base for every entity produced by extraction or resolution.
    Instances are immutable once constructed.
    """
    model_config = ConfigDict(frozen=True)


class SourcePosition(FrozenModel):
    line: int  # 1-indexed
    column: int  # 0-indexed


class SourceLocation(FrozenModel):
    """
    A span in a source file, as reported by the parser (`loc`).
    """
    start: SourcePosition
    end: SourcePosition

    def contains(self, line: int, column: int) -> bool:
        """True if the 1-indexed line / 0-indexed column falls inside this span."""
        if line < self.start.line or line > self.end.line:
            return False
        if line == self.start.line and column < self.start.column:
            return False
        if line == self.end.line and column > self.end.column:
            return False
        return True

    def extent(self) -> tuple:
        """(line span, column span) used to prefer the tightest enclosing span."""
        return (self.end.line - self.start.line, self.end.column - self.start.column)


# Structural entities (built once per file by parser.structure)

class ParameterInfo(FrozenModel):
    name: str
    type_name: str
    storage_location: Optional[str] = None  # memory / storage / calldata


class FunctionInfo(FrozenModel):
    """
    Represents a function (or constructor/modifier-free callable) of a contract.
    """
    name: str
    visibility: str = "default"
    state_mutability: Optional[str] = None
    parameters: List[ParameterInfo] = Field(default_factory=list)
    return_parameters: List[ParameterInfo] = Field(default_factory=list)
    modifiers: List[str] = Field(default_factory=list)
    body: str = ""  # Empty for interface / abstract declarations
    full_source: str
    location: SourceLocation
    file_path: str
    contract_name: Optional[str] = None  # None for free functions

    @property
    def has_implementation(self) -> bool:
        return bool(self.body and self.body.strip())


class StructMember(FrozenModel):
    name: str
    type_name: str


class StructInfo(FrozenModel):
    name: str
    members: List[StructMember] = Field(default_factory=list)
    full_source: str
    location: SourceLocation
    file_path: str
    contract_name: Optional[str] = None


class EnumInfo(FrozenModel):
    name: str
    members: List[str] = Field(default_factory=list)
    full_source: str
    location: SourceLocation
    file_path: str
    contract_name: Optional[str] = None


class StateVariableInfo(FrozenModel):
    name: str
    type_name: str
    visibility: str = "default"
    full_source: str
    location: SourceLocation
    file_path: str
    contract_name: str


class ImportInfo(FrozenModel):
    path: str
    absolute_path: Optional[str] = None
    symbols: List[str] = Field(default_factory=list)


class ContractInfo(FrozenModel):
    """
    A contract, interface, library or abstract contract.
    Base contracts are kept by name only; the inheritance resolver links them.
    """
    name: str
    kind: Literal["contract", "interface", "library", "abstract"] = "contract"
    functions: List[FunctionInfo] = Field(default_factory=list)
    structs: List[StructInfo] = Field(default_factory=list)
    enums: List[EnumInfo] = Field(default_factory=list)
    state_variables: List[StateVariableInfo] = Field(default_factory=list)
    base_contracts: List[str] = Field(default_factory=list)
    location: SourceLocation
    file_path: str


class ParsedFile(FrozenModel):
    """
    Structural view of one source file, owned by the workspace index.
    """
    file_path: str
    contracts: List[ContractInfo] = Field(default_factory=list)
    imports: List[ImportInfo] = Field(default_factory=list)
    pragmas: List[str] = Field(default_factory=list)
    # File-level (free-standing) definitions
    structs: List[StructInfo] = Field(default_factory=list)
    enums: List[EnumInfo] = Field(default_factory=list)
    functions: List[FunctionInfo] = Field(default_factory=list)


# Resolution output

class TypeReference(FrozenModel):
    name: str  # Possibly contract-qualified, e.g. "Vault.Pool"
    kind: Literal["struct", "enum", "contract", "interface", "library"]
    definition: Optional[Union[StructInfo, EnumInfo]] = None


class FunctionCallInfo(FrozenModel):
    """
    A call site found inside a function body.
    """
    name: str
    expression: str  # "name", "this.name" or "_name"
    arguments: List[str] = Field(default_factory=list)
    location: SourceLocation
    resolved_function: Optional[FunctionInfo] = None


class ImplementationInfo(FrozenModel):
    """
    A concrete implementation of an interface (or base contract) method.
    """
    contract_name: str  # Contract whose function body implements the method
    contract_kind: str
    function_info: FunctionInfo
    file_path: str
    is_inherited: bool  # True when found on an ancestor of implementing_contract
    inheritance_chain: List[str] = Field(default_factory=list)
    implementing_contract: str  # Concrete contract the lookup was made for


class FunctionAnalysis(FrozenModel):
    """
    Everything a single function depends on, resolved across the workspace.
    """
    function: FunctionInfo
    contract_name: Optional[str] = None
    referenced_types: List[TypeReference] = Field(default_factory=list)
    inner_calls: List[FunctionCallInfo] = Field(default_factory=list)
    state_variables: List[StateVariableInfo] = Field(default_factory=list)


LookupKind = Literal["struct", "enum", "type", "function", "statevar"]


class LookupResult(FrozenModel):
    """
    Outcome of an on-demand "import this symbol" request.
    """
    name: str
    kind: LookupKind
    success: bool
    error: Optional[str] = None  # "no definition found for <name>"
    type_reference: Optional[TypeReference] = None
    function_info: Optional[FunctionInfo] = None
    state_variable: Optional[StateVariableInfo] = None
    ambiguous: bool = False  # More than one same-named definition exists
    candidate_files: List[str] = Field(default_factory=list)


# Dependency-view data (positions and rendering are left to the view)

class SymbolBlock(FrozenModel):
    id: str
    title: str
    subtitle: Optional[str] = None
    source_code: str
    category: Literal["main", "struct", "enum", "function", "statevar"]
    file_path: str
    start_line: int


class Arrow(FrozenModel):
    id: str
    source_block_id: str
    source_line: int
    target_block_id: str
    target_line: Optional[int] = None
    type: Literal["function", "struct", "enum", "statevar"]
    label: Optional[str] = None


class IndexStats(FrozenModel):
    """
    Aggregate statistics for a workspace index.
    """
    total_files: int
    total_contracts: int
    contract_kinds: Dict[str, int] = Field(default_factory=dict)
    total_functions: int
    total_types: int  # Structs + enums
    total_state_variables: int
