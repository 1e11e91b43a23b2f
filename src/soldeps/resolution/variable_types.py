"""
Variable -> type inference over a block of source.

Lets a dependency view make a variable importable through its declared
type: clicking `pool_` can resolve `DepositPool`. The analyzer reaches it
through FunctionAnalyzer.lookup_variable.
"""

import re
from typing import Dict

from .config import (
    CONTROL_KEYWORDS,
    ELEMENTARY_TYPES,
    LIBRARY_TYPES,
    SKIP_NAMES,
    VARIABLE_TYPE_PATTERNS,
)

_WHITESPACE = re.compile(r"\s+")


def _is_user_type(type_name: str) -> bool:
    return (
        type_name.lower() not in ELEMENTARY_TYPES
        and type_name not in SKIP_NAMES
        and type_name not in LIBRARY_TYPES
    )


def _is_variable_name(name: str) -> bool:
    return name not in SKIP_NAMES and name not in CONTROL_KEYWORDS


def extract_variable_types(source: str) -> Dict[str, str]:
    """
    Map variable names to the user-defined type they are declared with.

    Later declarations overwrite earlier ones, except that an untyped
    `var = Type(...)` assignment never overrides a known declaration.

    Args:
        source: Source text (a function, contract or file)

    Returns:
        Dict of variable name -> type name
    """
    normalized = _WHITESPACE.sub(" ", source)
    var_types: Dict[str, str] = {}

    for key in ("declaration", "array_declaration", "mapping_value"):
        for match in VARIABLE_TYPE_PATTERNS[key].finditer(normalized):
            type_name, var_name = match.group(1), match.group(2)
            if _is_user_type(type_name) and _is_variable_name(var_name):
                var_types[var_name] = type_name

    for match in VARIABLE_TYPE_PATTERNS["assignment"].finditer(normalized):
        var_name, type_name = match.group(1), match.group(2)
        if _is_user_type(type_name) and _is_variable_name(var_name):
            var_types.setdefault(var_name, type_name)

    for match in VARIABLE_TYPE_PATTERNS["typed_assignment"].finditer(normalized):
        type_name, var_name = match.group(1), match.group(2)
        if _is_user_type(type_name) and _is_variable_name(var_name):
            var_types[var_name] = type_name

    return var_types
