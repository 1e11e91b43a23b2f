from typing import Any, Callable, Mapping, Tuple

from soldeps.exceptions import ParserError
from soldeps.logging_config import logger
from soldeps.schemas import ParsedFile
from .structure import extract_parsed_file
from .traverser import Node, node_kind

# External parser: source text -> SourceUnit node (with `loc`, ideally `range`)
ParseFunction = Callable[[str], Mapping[str, Any]]


def parse_source(source: str, file_path: str, parse_fn: ParseFunction) -> Tuple[Node, ParsedFile]:
    """
    Parses a single file's text into its syntax tree and structural view.

    The syntax tree itself comes from an injected parser; any failure there
    is reported as a ParserError rather than as a file with no symbols.

    Args:
        source: Full source text
        file_path: Path the file is indexed under
        parse_fn: Callable returning the file's SourceUnit node

    Returns:
        Tuple of (syntax tree, ParsedFile)

    Raises:
        ParserError: If the parser fails or returns something that is not a SourceUnit
    """
    logger.debug(f"Parsing file: {file_path}")

    try:
        ast = parse_fn(source)
    except Exception as e:
        logger.error(f"Could not parse {file_path}. Error: {e}")
        raise ParserError(file_path, str(e)) from e

    return ast, parsed_from_ast(ast, source, file_path)


def parsed_from_ast(ast: Any, source: str, file_path: str) -> ParsedFile:
    """
    Builds the structural view of an already-parsed file.

    Raises:
        ParserError: If the tree's root is not a SourceUnit
    """
    if node_kind(ast) != "SourceUnit":
        raise ParserError(file_path, f"expected a SourceUnit root, got {node_kind(ast) or type(ast).__name__}")
    return extract_parsed_file(ast, source, file_path)
