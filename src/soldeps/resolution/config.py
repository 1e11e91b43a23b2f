"""
Configuration for dependency resolution.

Exclusion tables, extraction patterns and resolver settings. Every name
heuristic the resolvers apply lives here.
"""

import re

from soldeps.exceptions import ConfigError

_INT_SIZES = range(8, 257, 8)

# Built-in primitive type names (compared lowercase)
ELEMENTARY_TYPES = frozenset(
    {"address", "bool", "string", "bytes", "uint", "int", "function", "unknown", "void", "var"}
    | {f"uint{n}" for n in _INT_SIZES}
    | {f"int{n}" for n in _INT_SIZES}
    | {f"bytes{n}" for n in range(1, 33)}
)

# Elementary types that also appear as casts: address(0), uint256(x)
TYPE_CASTS = frozenset(
    {"address", "bool", "string", "bytes", "uint", "int"}
    | {f"uint{n}" for n in _INT_SIZES}
    | {f"int{n}" for n in _INT_SIZES}
    | {f"bytes{n}" for n in range(1, 33)}
)

# Keywords, globals and qualifiers that are never type names
SKIP_NAMES = frozenset({
    "require", "assert", "revert", "keccak256", "sha256", "sha3",
    "ripemd160", "ecrecover", "addmod", "mulmod", "selfdestruct",
    "blockhash", "gasleft", "Error", "Panic", "abi", "block",
    "msg", "tx", "this", "super", "type", "true", "false",
    "if", "else", "for", "while", "do", "return", "emit", "new", "delete",
    "memory", "storage", "calldata", "public", "private", "internal", "external",
    "pure", "view", "payable", "constant", "immutable", "virtual", "override",
})

# Calls that are global built-ins or common external token / pool methods
BUILTIN_CALLS = frozenset({
    "require", "assert", "revert", "keccak256", "sha256", "sha3",
    "ripemd160", "ecrecover", "addmod", "mulmod", "selfdestruct",
    "blockhash", "gasleft", "type", "abi",
    "push", "pop", "transfer", "send", "call",
    "delegatecall", "staticcall", "encode", "encodePacked",
    "encodeWithSelector", "encodeWithSignature", "encodeCall", "decode",
    "length", "balance", "code", "codehash",
    # SafeERC20 and common interface methods
    "safeApprove", "safeTransfer", "safeTransferFrom", "safeIncreaseAllowance",
    "approve", "transferFrom", "allowance", "balanceOf", "totalSupply",
    "mint", "burn", "deposit", "withdraw", "borrow", "repay",
    "supply", "claim", "stake", "unstake",
})

# Control-flow keywords that look like calls: if (...), return (...)
CONTROL_KEYWORDS = frozenset({
    "if", "else", "for", "while", "do", "return", "emit", "new", "delete",
    "try", "catch", "break", "continue", "returns", "function", "modifier",
})

# Well-known library and helper types a dependency view never expands
LIBRARY_TYPES = frozenset({
    "SafeERC20", "SafeMath", "Address", "Strings", "Math",
    "ECDSA", "MerkleProof", "EnumerableSet", "EnumerableMap", "Error", "Panic", "Console",
})

# Interface naming convention: capital I followed by another capital (IERC20, IPool)
INTERFACE_NAME_PATTERN = re.compile(r"^I[A-Z]")

# Type-name shapes in declared parameter types
TYPE_NAME_PATTERNS = {
    "mapping": re.compile(r"mapping\s*\(\s*(.+?)\s*=>\s*(.+)\s*\)"),
    "array": re.compile(r"^(.+?)\s*\[.*\]$"),
}

# Body scans for user-defined type candidates, applied to a function's full source
TYPE_PATTERNS = {
    # DepositPool memory pool_
    "declaration_with_location": re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\s+(?:memory|storage|calldata)\s+\w+"),
    # Pool pool_ = ... / Pool pool_;
    "declaration": re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\s+\w+\s*[=;,)]"),
    # DepositPool({...}) / DepositPool(a, b)
    "instantiation": re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\s*\("),
    # Strategy.NO_YIELD
    "member_access": re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\.([A-Z][A-Z0-9_]*)\b"),
    # strategy_ == Strategy.NO_YIELD / Strategy.AAVE != x
    "comparison": re.compile(r"==\s*([A-Z][a-zA-Z0-9_]*)\.|\b([A-Z][a-zA-Z0-9_]*)\.\w+\s*[=!<>]"),
    # Anything capitalized
    "generic": re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\b"),
}

# Per-line scans for internal call candidates
CALL_PATTERNS = {
    "direct": re.compile(r"(?<![.\w])([a-z_][a-zA-Z0-9_]*)\s*\("),
    "this": re.compile(r"this\.([a-z_][a-zA-Z0-9_]*)\s*\("),
    "internal": re.compile(r"(?<![.\w])(_[a-zA-Z0-9_]+)\s*\("),
}

# Any identifier, for state-variable reference scans
IDENTIFIER_PATTERN = re.compile(r"\b([a-zA-Z_][a-zA-Z0-9_]*)\b")

# Variable -> type inference for dependency-view tokens
VARIABLE_TYPE_PATTERNS = {
    "declaration": re.compile(
        r"\b([A-Z][a-zA-Z0-9_]*)\s+(?:memory\s+|storage\s+|calldata\s+)?([a-z_][a-zA-Z0-9_]*)\b"
    ),
    "array_declaration": re.compile(
        r"\b([A-Z][a-zA-Z0-9_]*)\s*\[\s*\]\s*(?:memory\s+|storage\s+|calldata\s+)?([a-z_][a-zA-Z0-9_]*)\b"
    ),
    "mapping_value": re.compile(
        r"mapping\s*\([^)]*=>\s*([A-Z][a-zA-Z0-9_]*)\s*\)\s*(?:public\s+|private\s+|internal\s+)?([a-z_][a-zA-Z0-9_]*)\b"
    ),
    "assignment": re.compile(r"\b([a-z_][a-zA-Z0-9_]*)\s*=\s*([A-Z][a-zA-Z0-9_]*)\s*\("),
    "typed_assignment": re.compile(
        r"\b([A-Z][a-zA-Z0-9_]*)\s+(?!memory\b|storage\b|calldata\b)([a-z_][a-zA-Z0-9_]*)\s*="
    ),
}

# Resolver settings
RESOLUTION_CONFIG = {
    "min_type_name_length": 2,      # Shorter candidates are never type names
    "skip_interface_types": True,   # Interfaces are external and never offered as types
    "exclude_self_calls": True,     # Drop the trivial edge to the analyzed function itself
}

INHERITANCE_CONFIG = {
    "max_chain_depth": 50,          # Guard for pathological inheritance depth
}

LOOKUP_KINDS = ("struct", "enum", "type", "function", "statevar")


def validate_resolution_config() -> None:
    """
    Validate the resolver settings and pattern tables.

    Raises:
        ConfigError: If a setting is missing or a pattern table is malformed.
    """
    min_length = RESOLUTION_CONFIG.get("min_type_name_length")
    if not isinstance(min_length, int) or min_length < 1:
        raise ConfigError("RESOLUTION_CONFIG['min_type_name_length'] must be a positive integer")

    for table_name, table in (
        ("TYPE_PATTERNS", TYPE_PATTERNS),
        ("CALL_PATTERNS", CALL_PATTERNS),
        ("VARIABLE_TYPE_PATTERNS", VARIABLE_TYPE_PATTERNS),
    ):
        for key, pattern in table.items():
            if not isinstance(pattern, re.Pattern):
                raise ConfigError(f"{table_name}['{key}'] is not a compiled regex pattern")

    depth = INHERITANCE_CONFIG.get("max_chain_depth")
    if not isinstance(depth, int) or depth < 1:
        raise ConfigError("INHERITANCE_CONFIG['max_chain_depth'] must be a positive integer")
