import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

from soldeps.logging_config import logger
from soldeps.exceptions import ParserError
from soldeps.parser import parsed_from_ast
from soldeps.parser.config import AST_SIDECAR_SUFFIX, SUPPORTED_EXTENSIONS
from .workspace_index import WorkspaceIndex


class ASTSidecarStore:
    """
    Reads a workspace from source files and the syntax-tree sidecars an
    external parser wrote next to them (`Vault.sol` + `Vault.sol.ast.json`).
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def source_files(self) -> List[Path]:
        """All supported source files under the root, in a stable order."""
        return sorted(
            p for p in self.root.rglob("*")
            if p.is_file() and p.suffix in SUPPORTED_EXTENSIONS
        )

    def read(self, source_path: Path) -> Tuple[str, Dict[str, Any]]:
        """
        Load one file's source text and syntax tree.

        Raises:
            ParserError: If the sidecar is missing or not valid JSON.
        """
        sidecar = source_path.with_name(source_path.name + AST_SIDECAR_SUFFIX)
        if not sidecar.exists():
            raise ParserError(str(source_path), f"no syntax tree found at {sidecar}")

        try:
            source = source_path.read_text(encoding="utf-8")
            ast = json.loads(sidecar.read_text(encoding="utf-8"))
        except (IOError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParserError(str(source_path), str(e)) from e

        return source, ast

    def load(self) -> WorkspaceIndex:
        files = []
        asts = {}
        for source_path in self.source_files():
            source, ast = self.read(source_path)
            file_path = str(source_path)
            files.append(parsed_from_ast(ast, source, file_path))
            asts[file_path] = ast

        logger.info(f"Loaded {len(files)} files from {self.root}")
        return WorkspaceIndex(files, asts)


def load_workspace(directory: Path) -> WorkspaceIndex:
    """
    Build a workspace index from a directory of sources with syntax-tree sidecars.

    Raises:
        ParserError: If any source lacks a readable sidecar.
    """
    return ASTSidecarStore(directory).load()
