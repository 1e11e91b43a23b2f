"""
Public API for the indexing subsystem.
"""
from .workspace_index import WorkspaceIndex
from .index_builder import build_workspace_index, reindex_file
from .json_store import ASTSidecarStore, load_workspace
from .stats import compute_stats

__all__ = [
    "WorkspaceIndex",
    "build_workspace_index",
    "reindex_file",
    "ASTSidecarStore",
    "load_workspace",
    "compute_stats",
]
