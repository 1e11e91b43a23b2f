"""
The workspace index: every parsed file of an analysis session, keyed by path.

The index is a value. It is handed explicitly to each resolver and is never
patched in place; replacing a file yields a new index.
"""

from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from soldeps.schemas import ContractInfo, ParsedFile


class WorkspaceIndex:
    """
    Ordered mapping from file path to ParsedFile, plus the syntax tree of each
    file when one is available.

    Insertion order is the documented tie-break for same-named definitions.
    """

    def __init__(
        self,
        files: Optional[Iterable[ParsedFile]] = None,
        asts: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ):
        self._files: Dict[str, ParsedFile] = {}
        for parsed in files or []:
            self._files[parsed.file_path] = parsed
        self._asts: Dict[str, Mapping[str, Any]] = dict(asts or {})

    @property
    def files(self) -> Mapping[str, ParsedFile]:
        return MappingProxyType(self._files)

    def __contains__(self, file_path: object) -> bool:
        return file_path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def get(self, file_path: str) -> Optional[ParsedFile]:
        return self._files.get(file_path)

    def get_ast(self, file_path: str) -> Optional[Mapping[str, Any]]:
        return self._asts.get(file_path)

    def search_order(self, current_file: Optional[str] = None) -> Iterator[ParsedFile]:
        """
        Yield files in resolution order: the current file first (if indexed),
        then every other file in insertion order.
        """
        current = self._files.get(current_file) if current_file else None
        if current is not None:
            yield current
        for path, parsed in self._files.items():
            if path != current_file:
                yield parsed

    def iter_contracts(self) -> Iterator[ContractInfo]:
        for parsed in self._files.values():
            yield from parsed.contracts

    def with_file(self, parsed: ParsedFile, ast: Optional[Mapping[str, Any]] = None) -> "WorkspaceIndex":
        """
        Return a new index with one file added or replaced.

        A replaced file keeps its position in the search order.
        """
        files = dict(self._files)
        files[parsed.file_path] = parsed
        asts = dict(self._asts)
        if ast is not None:
            asts[parsed.file_path] = ast
        else:
            asts.pop(parsed.file_path, None)
        return WorkspaceIndex(files.values(), asts)

    def without_file(self, file_path: str) -> "WorkspaceIndex":
        files = [p for path, p in self._files.items() if path != file_path]
        asts = {path: a for path, a in self._asts.items() if path != file_path}
        return WorkspaceIndex(files, asts)

    def __repr__(self) -> str:
        return f"WorkspaceIndex(files={len(self._files)})"
