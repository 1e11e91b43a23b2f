from typing import Dict, Tuple

from soldeps.exceptions import ConfigError

# Source files handled by the workspace loader
SUPPORTED_EXTENSIONS = {
    ".sol": "solidity",
}

# Suffix of the syntax-tree sidecar written next to each source file
# by the external parser (e.g. `Vault.sol` -> `Vault.sol.ast.json`).
AST_SIDECAR_SUFFIX = ".ast.json"

# Node kind -> child slots to descend into, in order.
# A slot holds either a single node or a list of nodes; missing/None slots are skipped.
NODE_CHILD_SLOTS: Dict[str, Tuple[str, ...]] = {
    "SourceUnit": ("children",),
    "ContractDefinition": ("baseContracts", "subNodes"),
    "FunctionDefinition": ("parameters", "returnParameters", "modifiers", "body"),
    "ModifierDefinition": ("parameters", "body"),
    "VariableDeclaration": ("typeName", "expression"),
    "StructDefinition": ("members",),
    "EnumDefinition": ("members",),
    "Block": ("statements",),
    "UncheckedStatement": ("block",),
    "IfStatement": ("condition", "trueBody", "falseBody"),
    "WhileStatement": ("condition", "body"),
    "DoWhileStatement": ("condition", "body"),
    "ForStatement": ("initExpression", "conditionExpression", "loopExpression", "body"),
    "TryStatement": ("expression", "returnParameters", "body", "catchClauses"),
    "CatchClause": ("parameters", "body"),
    "ReturnStatement": ("expression",),
    "EmitStatement": ("eventCall",),
    "RevertStatement": ("revertCall",),
    "ExpressionStatement": ("expression",),
    "VariableDeclarationStatement": ("variables", "initialValue"),
    "FunctionCall": ("expression", "arguments"),
    "NameValueExpression": ("expression", "arguments"),
    "NameValueList": ("arguments",),
    "MemberAccess": ("expression",),
    "IndexAccess": ("base", "index"),
    "IndexRangeAccess": ("base", "indexStart", "indexEnd"),
    "BinaryOperation": ("left", "right"),
    "Assignment": ("left", "right"),
    "UnaryOperation": ("subExpression",),
    "Conditional": ("condition", "trueExpression", "falseExpression"),
    "TupleExpression": ("components",),
    "ArrayTypeName": ("baseTypeName", "length"),
    "Mapping": ("keyType", "valueType"),
    "NewExpression": ("typeName",),
    "ModifierInvocation": ("arguments",),
    "InheritanceSpecifier": ("baseName", "arguments"),
    "UsingForDeclaration": ("typeName",),
    "StateVariableDeclaration": ("variables", "initialValue"),
    "EventDefinition": ("parameters",),
    "CustomErrorDefinition": ("parameters",),
    "ErrorDefinition": ("parameters",),
}

# Kinds with no child nodes worth visiting
LEAF_NODE_KINDS = frozenset({
    "Identifier",
    "NumberLiteral",
    "StringLiteral",
    "BooleanLiteral",
    "HexLiteral",
    "HexNumber",
    "ElementaryTypeName",
    "UserDefinedTypeName",
    "PragmaDirective",
    "ImportDirective",
    "EnumValue",
    "BreakStatement",
    "ContinueStatement",
    "PlaceholderStatement",
    "InlineAssemblyStatement",
    "AssemblyBlock",
})

# Node kinds that count as "function definitions" for position queries
FUNCTION_NODE_KINDS = ("FunctionDefinition",)


def validate_node_tables() -> None:
    """
    Validate that the node-shape tables are consistent.

    Raises:
        ConfigError: If a kind is declared both as a leaf and with child slots,
            or a slot list is malformed.
    """
    overlap = LEAF_NODE_KINDS.intersection(NODE_CHILD_SLOTS)
    if overlap:
        raise ConfigError(
            f"Node kinds declared both as leaves and with children: {', '.join(sorted(overlap))}"
        )

    for kind, slots in NODE_CHILD_SLOTS.items():
        if not isinstance(slots, tuple) or not all(isinstance(s, str) and s for s in slots):
            raise ConfigError(f"Node kind '{kind}' has an invalid child slot list")
