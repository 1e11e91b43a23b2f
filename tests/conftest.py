"""
Pytest configuration for the soldeps test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- Model factories for building workspaces without a parser
- A two-file Solidity workspace with hand-written syntax trees, in the
  shape @solidity-parser/parser emits (`type` tags, `loc`, `range`)
"""

import json
import os
from types import SimpleNamespace

import pytest

from soldeps.logging_config import reset_logging, setup_logging
from soldeps.index import WorkspaceIndex
from soldeps.parser import parsed_from_ast
from soldeps.schemas import (
    ContractInfo,
    EnumInfo,
    FunctionInfo,
    ParameterInfo,
    ParsedFile,
    SourceLocation,
    SourcePosition,
    StateVariableInfo,
    StructInfo,
)


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Keep log output off the console during test runs."""
    os.environ.setdefault("SOLDEPS_MACHINE_MODE", "1")


@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    reset_logging()
    setup_logging(level="DEBUG", suppress_console=True)


# ============================================================================
# MODEL FACTORIES
# ============================================================================

def _location(start_line, start_column=0, end_line=None, end_column=0):
    return SourceLocation(
        start=SourcePosition(line=start_line, column=start_column),
        end=SourcePosition(line=end_line or start_line, column=end_column),
    )


def make_function(name, full_source, file_path="contracts/Test.sol", start_line=1,
                  parameters=(), contract_name=None, body=None):
    """FunctionInfo from its source text; the body defaults to everything from the first brace."""
    lines = full_source.split("\n")
    if body is None:
        brace = full_source.find("{")
        body = full_source[brace:] if brace >= 0 else ""
    return FunctionInfo(
        name=name,
        visibility="internal",
        parameters=[ParameterInfo(name=n, type_name=t) for n, t in parameters],
        body=body,
        full_source=full_source,
        location=_location(start_line, 4, start_line + len(lines) - 1, max(len(lines[-1]) - 1, 0)),
        file_path=file_path,
        contract_name=contract_name,
    )


def make_struct(name, file_path="contracts/Test.sol", contract_name=None, line=1):
    return StructInfo(
        name=name,
        full_source=f"struct {name} {{ uint256 value; }}",
        location=_location(line),
        file_path=file_path,
        contract_name=contract_name,
    )


def make_enum(name, members=("A", "B"), file_path="contracts/Test.sol", contract_name=None, line=1):
    return EnumInfo(
        name=name,
        members=list(members),
        full_source=f"enum {name} {{ {', '.join(members)} }}",
        location=_location(line),
        file_path=file_path,
        contract_name=contract_name,
    )


def make_state_variable(name, contract_name, type_name="uint256", file_path="contracts/Test.sol", line=1):
    return StateVariableInfo(
        name=name,
        type_name=type_name,
        visibility="public",
        full_source=f"{type_name} public {name};",
        location=_location(line),
        file_path=file_path,
        contract_name=contract_name,
    )


def make_contract(name, kind="contract", functions=(), structs=(), enums=(),
                  state_variables=(), base_contracts=(), file_path="contracts/Test.sol"):
    return ContractInfo(
        name=name,
        kind=kind,
        functions=list(functions),
        structs=list(structs),
        enums=list(enums),
        state_variables=list(state_variables),
        base_contracts=list(base_contracts),
        location=_location(1),
        file_path=file_path,
    )


def make_file(file_path, contracts=(), structs=(), enums=(), functions=()):
    return ParsedFile(
        file_path=file_path,
        contracts=list(contracts),
        structs=list(structs),
        enums=list(enums),
        functions=list(functions),
    )


@pytest.fixture
def models():
    """Factories for schema objects, grouped so tests can build workspaces inline."""
    return SimpleNamespace(
        function=make_function,
        struct=make_struct,
        enum=make_enum,
        state_variable=make_state_variable,
        contract=make_contract,
        file=make_file,
        location=_location,
    )


# ============================================================================
# SAMPLE WORKSPACE (source + hand-written syntax trees)
# ============================================================================

TYPES_PATH = "contracts/Types.sol"
VAULT_PATH = "contracts/Vault.sol"

TYPES_SOURCE = """pragma solidity ^0.8.20;

contract Types {
    struct DepositPool {
        uint256 amount;
        address depositor;
    }

    enum Strategy { NO_YIELD, AAVE }
}
"""

VAULT_SOURCE = """pragma solidity ^0.8.20;

import "./Types.sol";

contract Vault is Types {
    uint256 public totalDeposits;
    address public owner;

    function deposit(uint256 amount, Strategy strategy_) external {
        DepositPool memory pool_ = DepositPool({amount: amount, depositor: msg.sender});
        if (strategy_ == Strategy.NO_YIELD) {
            totalDeposits += amount;
        }
        _validateReserveConfig(pool_);
        IERC20(token).safeApprove(spender, amount);
    }

    function _validateReserveConfig(DepositPool memory pool_) internal view {
        require(pool_.depositor == owner, "not owner");
    }

    function _unused(uint256 x) internal pure returns (uint256) {
        return _missingHelper(x);
    }
}
"""


class SourceMap:
    """
    Builds syntax-tree nodes whose `range` and `loc` point at real text.

    `loc` end columns are the column of the node's last character.
    """

    def __init__(self, source):
        self.source = source

    def position(self, offset):
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1)
        return {"line": line, "column": column}

    def span_node(self, node_type, start, end, **props):
        node = {
            "type": node_type,
            "range": [start, end],
            "loc": {"start": self.position(start), "end": self.position(end)},
        }
        node.update(props)
        return node

    def node(self, node_type, snippet, after=0, **props):
        start = self.source.index(snippet, after)
        return self.span_node(node_type, start, start + len(snippet) - 1, **props)

    def braced(self, node_type, head, after=0, **props):
        """Node running from `head` to the brace closing the first block after it."""
        start = self.source.index(head, after)
        depth = 0
        for offset in range(self.source.index("{", start), len(self.source)):
            char = self.source[offset]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return self.span_node(node_type, start, offset, **props)
        raise ValueError(f"Unbalanced braces after {head!r}")


def elementary(name):
    return {"type": "ElementaryTypeName", "name": name}


def user_type(name):
    return {"type": "UserDefinedTypeName", "namePath": name}


def variable(name, type_node, **props):
    node = {"type": "VariableDeclaration", "name": name, "typeName": type_node}
    node.update(props)
    return node


def identifier(name):
    return {"type": "Identifier", "name": name}


def build_types_ast():
    sm = SourceMap(TYPES_SOURCE)
    struct = sm.braced(
        "StructDefinition", "struct DepositPool",
        name="DepositPool",
        members=[
            variable("amount", elementary("uint256")),
            variable("depositor", elementary("address")),
        ],
    )
    enum = sm.braced(
        "EnumDefinition", "enum Strategy",
        name="Strategy",
        members=[{"type": "EnumValue", "name": "NO_YIELD"}, {"type": "EnumValue", "name": "AAVE"}],
    )
    contract = sm.braced(
        "ContractDefinition", "contract Types",
        name="Types", kind="contract", baseContracts=[], subNodes=[struct, enum],
    )
    return {
        "type": "SourceUnit",
        "children": [{"type": "PragmaDirective", "name": "solidity", "value": "^0.8.20"}, contract],
    }


def _function_node(sm, head, name, parameters, statements=(), return_parameters=None, **props):
    start = sm.source.index(head)
    body = sm.braced("Block", "{", after=start, statements=list(statements))
    return sm.braced(
        "FunctionDefinition", head,
        name=name,
        parameters=parameters,
        returnParameters=return_parameters,
        modifiers=[],
        body=body,
        isConstructor=False,
        isReceiveEther=False,
        isFallback=False,
        **props,
    )


def build_vault_ast():
    sm = SourceMap(VAULT_SOURCE)
    deposit_start = VAULT_SOURCE.index("function deposit")

    call = sm.node(
        "FunctionCall", "_validateReserveConfig(pool_)", after=deposit_start,
        expression=identifier("_validateReserveConfig"),
        arguments=[identifier("pool_")],
        names=[],
    )
    call_statement = sm.node(
        "ExpressionStatement", "_validateReserveConfig(pool_);", after=deposit_start,
        expression=call,
    )

    deposit = _function_node(
        sm, "function deposit", "deposit",
        parameters=[
            variable("amount", elementary("uint256")),
            variable("strategy_", user_type("Strategy")),
        ],
        statements=[call_statement],
        visibility="external",
        stateMutability=None,
    )
    validate = _function_node(
        sm, "function _validateReserveConfig", "_validateReserveConfig",
        parameters=[variable("pool_", user_type("DepositPool"), storageLocation="memory")],
        visibility="internal",
        stateMutability="view",
    )
    unused = _function_node(
        sm, "function _unused", "_unused",
        parameters=[variable("x", elementary("uint256"))],
        return_parameters=[variable(None, elementary("uint256"))],
        visibility="internal",
        stateMutability="pure",
    )

    state_vars = [
        sm.node(
            "StateVariableDeclaration", "uint256 public totalDeposits;",
            variables=[variable("totalDeposits", elementary("uint256"), visibility="public", isStateVar=True)],
            initialValue=None,
        ),
        sm.node(
            "StateVariableDeclaration", "address public owner;",
            variables=[variable("owner", elementary("address"), visibility="public", isStateVar=True)],
            initialValue=None,
        ),
    ]

    contract = sm.braced(
        "ContractDefinition", "contract Vault",
        name="Vault",
        kind="contract",
        baseContracts=[{
            "type": "InheritanceSpecifier",
            "baseName": user_type("Types"),
            "arguments": [],
        }],
        subNodes=state_vars + [deposit, validate, unused],
    )
    return {
        "type": "SourceUnit",
        "children": [
            {"type": "PragmaDirective", "name": "solidity", "value": "^0.8.20"},
            {"type": "ImportDirective", "path": "./Types.sol", "unitAlias": None, "symbolAliases": None},
            contract,
        ],
    }


@pytest.fixture
def sample_sources():
    """File path -> source text, in index order."""
    return {TYPES_PATH: TYPES_SOURCE, VAULT_PATH: VAULT_SOURCE}


@pytest.fixture
def sample_asts():
    return {TYPES_PATH: build_types_ast(), VAULT_PATH: build_vault_ast()}


@pytest.fixture
def parse_fn(sample_sources, sample_asts):
    """Stand-in for the external parser: returns the prepared tree for a known source."""
    trees = {sample_sources[path]: sample_asts[path] for path in sample_sources}

    def parse(source):
        if source not in trees:
            raise ValueError("extraneous input 'garbage' expecting {<EOF>, 'pragma', 'import'}")
        return trees[source]

    return parse


@pytest.fixture
def sample_index(sample_sources, sample_asts):
    files = [parsed_from_ast(sample_asts[p], sample_sources[p], p) for p in sample_sources]
    return WorkspaceIndex(files, sample_asts)


@pytest.fixture
def sample_index_without_asts(sample_index):
    return WorkspaceIndex(sample_index.files.values())


@pytest.fixture
def workspace_dir(tmp_path, sample_sources, sample_asts):
    """A directory of .sol files with their .sol.ast.json sidecars."""
    for file_path, source in sample_sources.items():
        target = tmp_path / file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source, encoding="utf-8")
        sidecar = target.with_name(target.name + ".ast.json")
        sidecar.write_text(json.dumps(sample_asts[file_path]), encoding="utf-8")
    return tmp_path
