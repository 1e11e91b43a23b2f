"""
Tests for type resolution.
"""

import pytest

from soldeps.index import WorkspaceIndex
from soldeps.resolution import TypeResolver


@pytest.fixture
def resolver():
    return TypeResolver()


@pytest.fixture
def pool_workspace(models):
    """DepositPool struct and Strategy enum declared in a separate file."""
    definitions = models.file(
        "contracts/Types.sol",
        contracts=[models.contract(
            "Types",
            structs=[models.struct("DepositPool", "contracts/Types.sol", "Types")],
            enums=[models.enum("Strategy", ("NO_YIELD", "AAVE"), "contracts/Types.sol", "Types")],
            file_path="contracts/Types.sol",
        )],
    )
    caller = models.file("contracts/Caller.sol")
    return WorkspaceIndex([caller, definitions])


class TestCandidateExtraction:

    def test_struct_instantiation(self, resolver, models, pool_workspace):
        function = models.function(
            "open",
            "function open() internal {\n"
            "    DepositPool memory pool_ = DepositPool({amount: 1, depositor: msg.sender});\n"
            "}",
            file_path="contracts/Caller.sol",
        )
        refs = resolver.resolve_types(function, "contracts/Caller.sol", pool_workspace)
        assert [(r.name, r.kind) for r in refs] == [("DepositPool", "struct")]
        assert refs[0].definition.file_path == "contracts/Types.sol"

    def test_enum_comparison(self, resolver, models, pool_workspace):
        function = models.function(
            "check",
            "function check(uint8 strategy_) internal pure returns (bool) {\n"
            "    return strategy_ == Strategy.NO_YIELD;\n"
            "}",
        )
        refs = resolver.resolve_types(function, "contracts/Caller.sol", pool_workspace)
        assert [(r.name, r.kind) for r in refs] == [("Strategy", "enum")]

    def test_elementary_types_only(self, resolver, models, pool_workspace):
        function = models.function(
            "plain",
            "function plain() internal {\n    uint256 x;\n    address a;\n    bool b;\n}",
            parameters=[("x", "uint256"), ("a", "address")],
        )
        assert resolver.resolve_types(function, "contracts/Caller.sol", pool_workspace) == []

    def test_interface_names_excluded(self, resolver, models):
        function = models.function(
            "approve",
            "function approve() internal {\n    IERC20(token).safeApprove(spender, amt);\n}",
        )
        assert "IERC20" not in resolver.extract_type_candidates(function)

    def test_all_caps_constants_skipped(self, resolver, models):
        function = models.function("f", "function f() internal {\n    x = MAX_BPS;\n}")
        assert resolver.extract_type_candidates(function) == []

    def test_parameter_types_unwrapped(self, resolver, models):
        function = models.function(
            "f",
            "function f() internal {}",
            parameters=[("pools", "mapping(address => DepositPool[])"), ("s", "Strategy[4]")],
        )
        assert resolver.extract_type_candidates(function) == ["DepositPool", "Strategy"]

    def test_parameters_come_before_body(self, resolver, models):
        function = models.function(
            "f",
            "function f(Strategy s) internal {\n    DepositPool memory p;\n}",
            parameters=[("s", "Strategy")],
        )
        assert resolver.extract_type_candidates(function) == ["Strategy", "DepositPool"]

    def test_dedupe_by_local_name(self, resolver, models):
        function = models.function(
            "f",
            "function f(Types.DepositPool memory p) internal {\n    DepositPool memory q = p;\n}",
            parameters=[("p", "Types.DepositPool")],
        )
        candidates = resolver.extract_type_candidates(function)
        assert candidates.count("Types.DepositPool") == 1
        assert "DepositPool" not in candidates

    def test_keywords_filtered(self, resolver):
        for name in ("Error", "Panic", "X"):
            assert not resolver.is_candidate(name)
        assert resolver.is_candidate("DepositPool")
        assert resolver.is_candidate("Index")  # I followed by lowercase is not an interface


class TestResolution:

    def test_unresolved_dropped(self, resolver, models, pool_workspace):
        function = models.function("f", "function f() internal {\n    Missing memory u;\n}")
        assert resolver.resolve_types(function, "contracts/Caller.sol", pool_workspace) == []

    def test_current_file_wins(self, resolver, models):
        local = models.file("contracts/A.sol", structs=[models.struct("Pool", "contracts/A.sol")])
        other = models.file("contracts/B.sol", structs=[models.struct("Pool", "contracts/B.sol")])
        index = WorkspaceIndex([other, local])
        function = models.function("f", "function f() internal {\n    Pool memory p;\n}", file_path="contracts/A.sol")

        refs = resolver.resolve_types(function, "contracts/A.sol", index)
        assert refs[0].definition.file_path == "contracts/A.sol"

    def test_struct_before_enum_within_contract(self, resolver, models):
        contract = models.contract(
            "C", structs=[models.struct("Thing", contract_name="C")], enums=[models.enum("Thing", contract_name="C")]
        )
        index = WorkspaceIndex([models.file("contracts/Test.sol", contracts=[contract])])
        assert resolver.resolve_single_type("Thing", index).kind == "struct"

    def test_qualified_name_restricts_contract(self, resolver, models):
        a = models.contract("A", structs=[models.struct("Pool", contract_name="A")])
        b = models.contract("B", structs=[models.struct("Pool", contract_name="B", line=7)])
        index = WorkspaceIndex([models.file("contracts/Test.sol", contracts=[a, b])])

        ref = resolver.resolve_single_type("B.Pool", index)
        assert ref.name == "B.Pool"
        assert ref.definition.contract_name == "B"
        assert resolver.resolve_single_type("C.Pool", index) is None

    def test_file_level_definitions(self, resolver, models):
        index = WorkspaceIndex([models.file("contracts/Free.sol", enums=[models.enum("Side", ("LEFT", "RIGHT"))])])
        ref = resolver.resolve_single_type("Side", index)
        assert ref.kind == "enum"
        assert ref.definition.contract_name is None

    def test_resolve_single_type_is_idempotent(self, resolver, pool_workspace):
        first = resolver.resolve_single_type("DepositPool", pool_workspace)
        second = resolver.resolve_single_type("DepositPool", pool_workspace)
        assert first == second
        assert resolver.type_exists("Strategy", pool_workspace)
        assert not resolver.type_exists("Missing", pool_workspace)

    def test_find_type_candidates(self, resolver, models):
        index = WorkspaceIndex([
            models.file("contracts/A.sol", structs=[models.struct("Pool", "contracts/A.sol")]),
            models.file("contracts/B.sol", structs=[models.struct("Pool", "contracts/B.sol")]),
        ])
        candidates = resolver.find_type_candidates("Pool", index)
        assert [c.definition.file_path for c in candidates] == ["contracts/A.sol", "contracts/B.sol"]

    def test_sources(self, resolver, pool_workspace):
        ref = resolver.resolve_single_type("Strategy", pool_workspace)
        assert resolver.get_enum_source(ref.definition) == "enum Strategy { NO_YIELD, AAVE }"
        pool = resolver.resolve_single_type("DepositPool", pool_workspace)
        assert resolver.get_struct_source(pool.definition).startswith("struct DepositPool")
