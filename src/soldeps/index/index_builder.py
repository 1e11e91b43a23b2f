import time
from typing import Mapping

from soldeps.logging_config import logger
from soldeps.parser import parse_source, ParseFunction
from .workspace_index import WorkspaceIndex


def build_workspace_index(sources: Mapping[str, str], parse_fn: ParseFunction) -> WorkspaceIndex:
    """
    Parse every source and assemble the workspace index.

    Files are indexed in the iteration order of `sources`, which becomes the
    search order for same-named definitions.

    Args:
        sources: Mapping of file path -> source text
        parse_fn: External parser returning a SourceUnit node for a source text

    Returns:
        WorkspaceIndex holding every parsed file and its syntax tree

    Raises:
        ParserError: If any file fails to parse
    """
    start_time = time.time()
    logger.info(f"Building workspace index for {len(sources)} files")

    files = []
    asts = {}
    for file_path, source in sources.items():
        ast, parsed = parse_source(source, file_path, parse_fn)
        files.append(parsed)
        asts[file_path] = ast

    index = WorkspaceIndex(files, asts)
    elapsed = time.time() - start_time
    logger.info(f"Indexed {len(index)} files in {elapsed:.3f}s")
    return index


def reindex_file(index: WorkspaceIndex, file_path: str, source: str, parse_fn: ParseFunction) -> WorkspaceIndex:
    """
    Re-parse one changed file and return a new index with it replaced.

    Raises:
        ParserError: If the file fails to parse; the original index is left untouched
    """
    ast, parsed = parse_source(source, file_path, parse_fn)
    logger.info(f"Re-indexed {file_path}")
    return index.with_file(parsed, ast)
