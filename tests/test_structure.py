"""
Tests for structural extraction and the parse boundary.
"""

import os

import pytest

from soldeps.exceptions import ParserError
from soldeps.parser import parse_source, parsed_from_ast, type_name_to_string
from soldeps.parser.config import validate_node_tables


class TestExtraction:
    """AST -> ParsedFile."""

    def test_vault_contract(self, sample_index):
        vault = sample_index.get("contracts/Vault.sol")
        assert [c.name for c in vault.contracts] == ["Vault"]

        contract = vault.contracts[0]
        assert contract.kind == "contract"
        assert contract.base_contracts == ["Types"]
        assert [f.name for f in contract.functions] == ["deposit", "_validateReserveConfig", "_unused"]
        assert [(v.name, v.type_name, v.visibility) for v in contract.state_variables] == [
            ("totalDeposits", "uint256", "public"),
            ("owner", "address", "public"),
        ]

    def test_function_source_and_location(self, sample_index):
        deposit = sample_index.get("contracts/Vault.sol").contracts[0].functions[0]

        assert deposit.full_source.startswith("function deposit(uint256 amount, Strategy strategy_) external {")
        assert deposit.full_source.endswith("}")
        assert deposit.body.startswith("{")
        assert "_validateReserveConfig(pool_);" in deposit.body
        assert deposit.location.start.line == 9
        assert deposit.location.start.column == 4
        assert deposit.location.end.line == 16
        assert deposit.contract_name == "Vault"
        assert deposit.file_path == "contracts/Vault.sol"
        assert deposit.visibility == "external"
        assert [(p.name, p.type_name) for p in deposit.parameters] == [
            ("amount", "uint256"),
            ("strategy_", "Strategy"),
        ]

    def test_parameter_storage_location(self, sample_index):
        validate = sample_index.get("contracts/Vault.sol").contracts[0].functions[1]
        assert validate.parameters[0].storage_location == "memory"
        assert validate.state_mutability == "view"

    def test_structs_and_enums(self, sample_index):
        types = sample_index.get("contracts/Types.sol").contracts[0]

        pool = types.structs[0]
        assert pool.name == "DepositPool"
        assert [(m.name, m.type_name) for m in pool.members] == [
            ("amount", "uint256"),
            ("depositor", "address"),
        ]
        assert pool.full_source.startswith("struct DepositPool {")
        assert pool.contract_name == "Types"

        strategy = types.enums[0]
        assert strategy.members == ["NO_YIELD", "AAVE"]
        assert strategy.full_source == "enum Strategy { NO_YIELD, AAVE }"
        assert strategy.location.start.line == 9

    def test_imports_and_pragmas(self, sample_index):
        vault = sample_index.get("contracts/Vault.sol")
        assert vault.pragmas == ["solidity ^0.8.20"]
        assert vault.imports[0].path == "./Types.sol"
        assert vault.imports[0].absolute_path == os.path.normpath("contracts/Types.sol")

    def test_loc_only_slicing(self, sample_sources, sample_asts):
        """Without `range`, text is sliced by loc with an inclusive end column."""

        def strip_ranges(node):
            if isinstance(node, dict):
                return {k: strip_ranges(v) for k, v in node.items() if k != "range"}
            if isinstance(node, list):
                return [strip_ranges(v) for v in node]
            return node

        path = "contracts/Types.sol"
        parsed = parsed_from_ast(strip_ranges(sample_asts[path]), sample_sources[path], path)
        assert parsed.contracts[0].enums[0].full_source == "enum Strategy { NO_YIELD, AAVE }"
        assert parsed.contracts[0].structs[0].full_source.endswith("}")

    def test_special_function_names(self):
        source = "contract C { constructor() {} receive() external payable {} }"
        ast = {
            "type": "SourceUnit",
            "children": [{
                "type": "ContractDefinition",
                "name": "C",
                "kind": "contract",
                "baseContracts": [],
                "subNodes": [
                    {"type": "FunctionDefinition", "name": None, "isConstructor": True, "parameters": []},
                    {"type": "FunctionDefinition", "name": None, "isReceiveEther": True, "parameters": []},
                ],
            }],
        }
        parsed = parsed_from_ast(ast, source, "C.sol")
        assert [f.name for f in parsed.contracts[0].functions] == ["constructor", "receive"]
        assert not parsed.contracts[0].functions[0].has_implementation

    def test_file_level_definitions(self):
        source = "struct Point { uint256 x; }\nenum Side { LEFT, RIGHT }\n"
        ast = {
            "type": "SourceUnit",
            "children": [
                {"type": "StructDefinition", "name": "Point", "range": [0, 26],
                 "members": [{"type": "VariableDeclaration", "name": "x",
                              "typeName": {"type": "ElementaryTypeName", "name": "uint256"}}]},
                {"type": "EnumDefinition", "name": "Side", "range": [28, 52],
                 "members": [{"type": "EnumValue", "name": "LEFT"}, {"type": "EnumValue", "name": "RIGHT"}]},
            ],
        }
        parsed = parsed_from_ast(ast, source, "Free.sol")
        assert parsed.contracts == []
        assert parsed.structs[0].full_source == "struct Point { uint256 x; }"
        assert parsed.structs[0].contract_name is None
        assert parsed.enums[0].full_source == "enum Side { LEFT, RIGHT }"


class TestTypeNames:

    def test_mapping_and_array(self):
        node = {
            "type": "Mapping",
            "keyType": {"type": "ElementaryTypeName", "name": "address"},
            "valueType": {
                "type": "ArrayTypeName",
                "baseTypeName": {"type": "UserDefinedTypeName", "namePath": "Vault.Pool"},
                "length": None,
            },
        }
        assert type_name_to_string(node) == "mapping(address => Vault.Pool[])"

    def test_fixed_array(self):
        node = {
            "type": "ArrayTypeName",
            "baseTypeName": {"type": "ElementaryTypeName", "name": "uint8"},
            "length": {"type": "NumberLiteral", "number": "4"},
        }
        assert type_name_to_string(node) == "uint8[4]"

    def test_missing(self):
        assert type_name_to_string(None) == ""


class TestParseBoundary:
    """parse_source wraps parser failures."""

    def test_parse_returns_tree_and_structure(self, parse_fn, sample_sources):
        ast, parsed = parse_source(sample_sources["contracts/Vault.sol"], "contracts/Vault.sol", parse_fn)
        assert ast["type"] == "SourceUnit"
        assert parsed.contracts[0].name == "Vault"

    def test_parser_failure_raises(self, parse_fn):
        with pytest.raises(ParserError) as excinfo:
            parse_source("contract {", "contracts/Broken.sol", parse_fn)
        assert excinfo.value.file_path == "contracts/Broken.sol"
        assert "extraneous input" in str(excinfo.value)

    def test_non_source_unit_root(self):
        with pytest.raises(ParserError):
            parsed_from_ast({"type": "ContractDefinition"}, "", "x.sol")

    def test_node_tables_are_consistent(self):
        validate_node_tables()
